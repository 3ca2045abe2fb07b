"""Point lookup for interactive zone selection."""

from typing import Optional

from .geometry import Point, bounding_box, point_in_polygon
from .zones import Zone, ZoneTable


def find_zone_at(point: Point, table: ZoneTable) -> Optional[Zone]:
    """
    Find the zone containing a point.

    Zones are checked in table order and the first match wins. Cells do not
    overlap, so more than one match only happens on floating-point edge
    artifacts.
    """
    x, y = point
    for zone in table:
        min_x, min_y, max_x, max_y = bounding_box(zone.boundary)
        if not (min_x <= x <= max_x and min_y <= y <= max_y):
            continue
        if point_in_polygon(point, zone.boundary):
            return zone
    return None
