"""FastAPI main application."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import structlog
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from ..config import settings
from ..content.base import ContentGenerator
from ..content.gemini import GeminiContentGenerator
from ..core.zones import WorldSettings
from ..generation.orchestrator import GenerationRun, SpecialPlacementPolicy
from ..render.renderer import MatplotlibZoneRenderer

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Zone Map Generator API",
    description="Procedural zone maps generated from a world description",
    version="0.1.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class MapSession:
    """In-memory state of one generated map."""

    id: str
    run: GenerationRun
    renderer: MatplotlibZoneRenderer
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


sessions: Dict[str, MapSession] = {}
_generator: Optional[GeminiContentGenerator] = None


def get_content_generator() -> ContentGenerator:
    """Shared content generator; overridden in tests."""
    global _generator
    if _generator is None:
        _generator = GeminiContentGenerator()
    return _generator


def get_session_or_404(map_id: str) -> MapSession:
    session = sessions.get(map_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Map not found")
    return session


# Request/Response models
class MapGenerationRequest(BaseModel):
    """Request to generate a new map."""

    description: str = Field(..., min_length=1, description="Short world description")
    forced_entropy: Optional[float] = Field(
        None, ge=0, le=10, description="Placement entropy applied to every filler type"
    )
    seed: Optional[str] = Field(None, description="Random seed for reproducible placement")
    special_policy: SpecialPlacementPolicy = Field(
        default_factory=lambda: SpecialPlacementPolicy(settings.special_policy),
        description="weak places special zones immediately, strict waits for filler zones",
    )


class MapResponse(BaseModel):
    """Status of a map and its generation run."""

    map_id: str
    status: str
    description: str
    lore: Optional[str] = None
    zone_count: int
    created_at: datetime


class ZoneData(BaseModel):
    """A placed zone."""

    id: str
    kind: str
    is_special: bool
    type: str
    name: Optional[str] = None
    boundary: List[List[float]]
    placement_entropy: float
    where_to_place: Optional[str] = None
    display_color: str
    biome: str
    elevation_min: float
    elevation_max: float
    elevation: float
    temperature_min: float
    temperature_max: float
    temperature: float
    moisture_min: float
    moisture_max: float
    moisture: float
    resources: List[str]
    lore: str
    danger_level: float
    population: Optional[float] = None
    development: Optional[float] = None
    world_wonder: Optional[bool] = None
    probability: Optional[float] = None


def _map_response(session: MapSession) -> MapResponse:
    run = session.run
    return MapResponse(
        map_id=session.id,
        status=run.status.value,
        description=run.world_settings.description,
        lore=run.world_settings.lore,
        zone_count=len(run.table),
        created_at=session.created_at,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Zone Map Generator API")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the shared content generator."""
    logger.info("Shutting down Zone Map Generator API")
    if _generator is not None:
        await _generator.aclose()


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Zone Map Generator API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    if not settings.gemini_api_key:
        raise HTTPException(status_code=503, detail="Content generator not configured")
    return {"status": "healthy", "maps": len(sessions)}


@app.post("/maps/generate", response_model=MapResponse)
async def generate_map(request: MapGenerationRequest, background_tasks: BackgroundTasks,
                       generator: ContentGenerator = Depends(get_content_generator)):
    """
    Start map generation.

    Returns immediately; poll /maps/{map_id} and /maps/{map_id}/logs for progress.
    """
    logger.info("Map generation requested", request=request.model_dump())

    map_id = str(uuid.uuid4())
    renderer = MatplotlibZoneRenderer(settings.map_width, settings.map_height)
    run = GenerationRun(
        WorldSettings(description=request.description, forced_entropy=request.forced_entropy),
        generator,
        renderer=renderer,
        special_policy=request.special_policy,
        seed=request.seed,
    )
    session = MapSession(id=map_id, run=run, renderer=renderer)
    sessions[map_id] = session

    background_tasks.add_task(run_map_generation, map_id)
    return _map_response(session)


@app.get("/maps", response_model=List[MapResponse])
async def list_maps():
    """List all maps of this process."""
    return [_map_response(session) for session in sessions.values()]


@app.get("/maps/{map_id}", response_model=MapResponse)
async def get_map(map_id: str):
    """Get map status."""
    return _map_response(get_session_or_404(map_id))


@app.get("/maps/{map_id}/logs", response_model=List[str])
async def get_map_logs(map_id: str):
    """Progress messages emitted so far."""
    return list(get_session_or_404(map_id).run.logs)


@app.get("/maps/{map_id}/zones", response_model=List[ZoneData])
async def get_map_zones(map_id: str):
    """All zones placed so far."""
    session = get_session_or_404(map_id)
    return [zone.to_dict() for zone in session.run.table]


@app.get("/maps/{map_id}/select", response_model=ZoneData)
async def select_zone(map_id: str, x: float = Query(...), y: float = Query(...)):
    """Zone containing the point (x, y)."""
    session = get_session_or_404(map_id)
    zone = session.run.find_zone_at((x, y))
    if zone is None:
        raise HTTPException(status_code=404, detail="No zone at this point")
    return zone.to_dict()


@app.get("/maps/{map_id}/image")
async def get_map_image(map_id: str):
    """Current rendering of the map as PNG."""
    session = get_session_or_404(map_id)
    return Response(content=session.renderer.to_png(), media_type="image/png")


# Background task functions
async def run_map_generation(map_id: str):
    """Background task running one generation."""
    session = sessions[map_id]
    logger.info("Starting map generation", map_id=map_id)
    try:
        await session.run.run()
        logger.info("Map generation completed", map_id=map_id, zones=len(session.run.table))
    except Exception as e:
        logger.error("Map generation failed", map_id=map_id, error=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
