"""
Core zone generation and placement functionality.
"""

from .geometry import point_in_polygon, centroid, shares_edge, polygon_area
from .tessellation import Cell, TessellationConfig, generate_tessellation, generate_tessellation_from_config
from .zones import WorldSettings, Zone, ZoneKind, ZoneTable
from .placement import PlacementEngine
from .selection import find_zone_at

__all__ = ['point_in_polygon', 'centroid', 'shares_edge', 'polygon_area',
           'Cell', 'TessellationConfig', 'generate_tessellation', 'generate_tessellation_from_config',
           'WorldSettings', 'Zone', 'ZoneKind', 'ZoneTable',
           'PlacementEngine', 'find_zone_at']
