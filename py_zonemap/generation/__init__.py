"""
Map generation pipeline.
"""

from .orchestrator import GenerationRun, RunStatus, SpecialPlacementPolicy, generate_world_zone_table

__all__ = ['GenerationRun', 'RunStatus', 'SpecialPlacementPolicy', 'generate_world_zone_table']
