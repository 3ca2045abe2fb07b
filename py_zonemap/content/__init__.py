"""
Content generation: typed zone proposals and the Gemini client.
"""

from .base import ContentGenerator, with_retries
from .errors import ContentGenerationError
from .gemini import GeminiContentGenerator
from .json_repair import repair_json
from .models import FillerProposal, SpecialProposal, ZoneTemplate

__all__ = ['ContentGenerator', 'with_retries', 'ContentGenerationError',
           'GeminiContentGenerator', 'repair_json',
           'FillerProposal', 'SpecialProposal', 'ZoneTemplate']
