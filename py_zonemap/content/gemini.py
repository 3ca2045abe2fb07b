"""Gemini-backed content generator."""

from typing import Any, List, Optional, Sequence

import httpx
import structlog

from .base import with_retries
from .errors import ContentGenerationError
from .json_repair import repair_json
from .models import FillerProposal, SpecialProposal, ZoneTemplate
from ..config import settings

logger = structlog.get_logger()


LORE_PROMPT = (
    "Take the description of a fictional world below and write the base lore "
    "for its map: the scenery, a brief history and anything a traveller should "
    "know. World description: [{description}]. Output only the lore text, "
    "without formatting or special characters."
)

FILLER_TYPES_PROMPT = (
    "From the world lore below, list generic location types that will fill the "
    "whole map, such as forest or desert, each with the share of the map it "
    "covers. World lore: [{lore}]. The shares must add up to 1. Example item: "
    '{{"location_type": "desert", "location_probability": 0.2}}. Output a JSON '
    'array of {{"location_type": string, "location_probability": number}} '
    "with double-quoted keys and nothing else."
)

SPECIAL_TYPES_PROMPT = (
    "From the world lore below, list special locations present in the world. "
    "Do not list generic terrain like deserts or oceans; list things like desert "
    "monuments or ocean temples, and feel free to repeat a location_type with "
    "different names. World lore: [{lore}]. Example item: "
    '{{"location_type": "city", "location_name": "Orario", '
    '"location_short_lore": "Birthplace of human civilisation."}}. Output a JSON '
    'array of {{"location_type": string, "location_name": string, '
    '"location_short_lore": string}} with double-quoted keys and nothing else.'
)

FILLER_DETAIL_PROMPT = (
    "Generate location data for a generic location type. World lore: [{lore}]. "
    "Location type: [{zone_type}]. Output a JSON object "
    '{{"type": string, "placement_entropy": number (0 = all locations connected, '
    '10 = completely random distribution), "display_color": string (hex colour), '
    '"biome": string, "elevation_min": number, "elevation_max": number '
    '(0 is ground level), "temperature_min": number, "temperature_max": number, '
    '"moisture_min": number, "moisture_max": number, "resources": string[], '
    '"lore": string (lore shared by every location of this type), '
    '"danger_level": number (0 is peaceful, 10 is instant death)}} '
    "with double-quoted keys and nothing else."
)

SPECIAL_DETAIL_PROMPT = (
    "Generate location data for a special location. World lore: [{lore}]. "
    "Location type: [{zone_type}], location name: [{name}], short lore: "
    "[{short_lore}]. Output a JSON object "
    '{{"where_to_place": {where_options}, "type": string, "name": string, '
    '"display_color": string (hex colour), "biome": string, '
    '"elevation_min": number, "elevation_max": number (0 is ground level), '
    '"temperature_min": number, "temperature_max": number, '
    '"moisture_min": number, "moisture_max": number, "resources": string[], '
    '"population": number, "lore": string (detailed but not too long), '
    '"danger_level": number (0 is peaceful, 10 is instant death), '
    '"development": number (0 is untouched nature, 10 is dense high-tech city), '
    '"world_wonder": boolean}}. "where_to_place" picks the generic location '
    "this one fits into best and must be one of the given options. Use "
    "double-quoted keys and output nothing else."
)


class GeminiContentGenerator:
    """Content generator talking to the Gemini ``generateContent`` endpoint."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 max_attempts: Optional[int] = None,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the generator.

        Args:
            api_key: Gemini API key, defaults to settings
            model: Model name, defaults to settings
            base_url: REST base URL, defaults to settings
            timeout: Request timeout in seconds, defaults to settings
            max_attempts: Attempts per structured request, defaults to settings
            client: Optional pre-built httpx client (tests inject a mock transport)
        """
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.max_attempts = max_attempts or settings.max_generation_attempts
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.request_timeout_seconds
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _generate_text(self, prompt: str) -> str:
        """Send one prompt and return the first candidate's text."""
        response = await self._client.post(
            f"{self.base_url}/models/{self.model}:generateContent",
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )
        response.raise_for_status()

        try:
            parts = response.json()["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ContentGenerationError(f"Unexpected Gemini response shape: {e}") from e

        return "".join(part.get("text", "") for part in parts)

    async def _generate_json(self, prompt: str) -> Any:
        return repair_json(await self._generate_text(prompt))

    async def generate_lore(self, description: str) -> str:
        lore = await self._generate_text(LORE_PROMPT.format(description=description))
        logger.info("World lore generated", characters=len(lore))
        return lore.strip()

    async def generate_filler_templates(self, lore: str) -> Optional[List[FillerProposal]]:
        async def attempt():
            data = await self._generate_json(FILLER_TYPES_PROMPT.format(lore=lore))
            if not isinstance(data, list):
                raise ContentGenerationError("Expected a JSON array of filler types")
            return [FillerProposal.model_validate(item) for item in data]

        return await with_retries(attempt, self.max_attempts, "filler templates")

    async def generate_special_templates(self, lore: str) -> Optional[List[SpecialProposal]]:
        async def attempt():
            data = await self._generate_json(SPECIAL_TYPES_PROMPT.format(lore=lore))
            if not isinstance(data, list):
                raise ContentGenerationError("Expected a JSON array of special locations")
            return [SpecialProposal.model_validate(item) for item in data]

        return await with_retries(attempt, self.max_attempts, "special templates")

    async def generate_filler_detail(self, lore: str, zone_type: str) -> Optional[ZoneTemplate]:
        async def attempt():
            data = await self._generate_json(
                FILLER_DETAIL_PROMPT.format(lore=lore, zone_type=zone_type)
            )
            template = ZoneTemplate.model_validate(data)
            # The real probability comes from the filler proposal
            return template.model_copy(update={"probability": 0.0})

        return await with_retries(attempt, self.max_attempts, f"filler detail {zone_type}")

    async def generate_special_detail(self, lore: str, filler_type_names: Sequence[str],
                                      zone_type: str, name: str,
                                      short_lore: str) -> Optional[ZoneTemplate]:
        where_options = "|".join(f'"{filler}"' for filler in filler_type_names) or "string"

        async def attempt():
            data = await self._generate_json(SPECIAL_DETAIL_PROMPT.format(
                lore=lore, zone_type=zone_type, name=name,
                short_lore=short_lore, where_options=where_options,
            ))
            return ZoneTemplate.model_validate(data)

        return await with_retries(attempt, self.max_attempts, f"special detail {name}")
