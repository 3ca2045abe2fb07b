"""Polygon helpers shared by tessellation, placement and selection.

Polygons are sequences of ``(x, y)`` pairs. The first vertex implicitly
connects to the last one.
"""

from typing import Iterable, Sequence, Set, Tuple

Point = Tuple[float, float]
Polygon = Sequence[Point]


def point_in_polygon(point: Point, polygon: Polygon) -> bool:
    """
    Test whether a point lies inside a polygon.

    Casts a horizontal ray from the point and counts edge crossings. Each
    edge is treated as half-open in y, so a vertex level with the point is
    counted once, never twice.

    Args:
        point: [x, y] coordinates to test
        polygon: Polygon vertices

    Returns:
        True if the point is inside, False otherwise (including for
        polygons with fewer than three vertices)
    """
    if len(polygon) < 3:
        return False

    x, y = point
    inside = False

    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]

        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i

    return inside


def centroid(polygon: Polygon) -> Point:
    """Arithmetic mean of the vertices, (0, 0) for an empty polygon."""
    if len(polygon) == 0:
        return (0.0, 0.0)

    sum_x = 0.0
    sum_y = 0.0
    for x, y in polygon:
        sum_x += x
        sum_y += y

    return (sum_x / len(polygon), sum_y / len(polygon))


def shares_edge(cell_a: Polygon, cell_b: Polygon) -> bool:
    """
    Cheap adjacency check between two cells.

    Voronoi neighbours share the vertices of their common ridge, so a single
    vertex with exactly equal coordinates is enough to call them adjacent.
    """
    if not cell_a or not cell_b:
        return False

    return touches_vertices(cell_b, vertex_set([cell_a]))


def vertex_set(polygons: Iterable[Polygon]) -> Set[Point]:
    """Collect the vertices of several polygons into one set."""
    return {(float(x), float(y)) for polygon in polygons for x, y in polygon}


def touches_vertices(polygon: Polygon, vertices: Set[Point]) -> bool:
    """True if any vertex of ``polygon`` is in ``vertices``."""
    return any((float(x), float(y)) in vertices for x, y in polygon)


def polygon_area(polygon: Polygon) -> float:
    """Absolute polygon area using the shoelace formula."""
    n = len(polygon)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += polygon[i][0] * polygon[j][1] - polygon[j][0] * polygon[i][1]

    return abs(area) / 2.0


def bounding_box(polygon: Polygon) -> Tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y); all zeros for an empty polygon."""
    if len(polygon) == 0:
        return (0.0, 0.0, 0.0, 0.0)

    xs = [p[0] for p in polygon]
    ys = [p[1] for p in polygon]
    return (min(xs), min(ys), max(xs), max(ys))
