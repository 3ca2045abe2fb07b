"""Tessellation generation for zone placement.

Cells are produced from a blue-noise point set that is distorted with a
Minkowski metric around the map centre, then turned into a Voronoi diagram
clipped to the map rectangle.
"""

import math
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import Voronoi
from scipy.stats import qmc
from shapely.geometry import Polygon as ShapelyPolygon, box
from shapely.geometry.polygon import orient

from ..utils.random import Seed, create_rng
from .geometry import polygon_area

logger = structlog.get_logger()

Cell = Tuple[Tuple[float, float], ...]

# Vertex coordinates are rounded so neighbouring cells agree exactly
VERTEX_DECIMALS = 4


class TessellationConfig(NamedTuple):
    """Configuration for tessellation generation."""
    width: float
    height: float
    target_count: int
    distortion_power: float = 2.0
    randomness: float = 0.0


def compute_min_distance(width: float, height: float, target_count: int,
                         randomness: float = 0.0) -> float:
    """
    Minimum distance between sampled points.

    The ideal spacing for ``target_count`` points over the area is reduced by
    ``randomness``: denser packing gives more irregular cells.
    """
    spacing = math.sqrt((width * height) / target_count)
    return max(max(5.0, spacing) - randomness, 1.0)


def sample_blue_noise(width: float, height: float, target_count: int,
                      min_distance: float, rng: np.random.Generator) -> np.ndarray:
    """
    Poisson-disc sample the map rectangle.

    Sampling happens in the unit square scaled by the longer side, so the
    minimum distance is preserved on both axes. The accepted points are
    shuffled before truncation so a partial sample still spans the map.

    Args:
        width: Map width
        height: Map height
        target_count: Maximum number of points to keep
        min_distance: Minimum distance between any two points
        rng: Random generator

    Returns:
        Array of [x, y] point coordinates, at most ``target_count`` long
    """
    side = max(width, height)
    radius = min(min_distance / side, 1.0)

    engine = qmc.PoissonDisk(d=2, radius=radius, seed=rng)
    points = engine.fill_space() * side

    inside = (points[:, 0] < width) & (points[:, 1] < height)
    points = points[inside]
    points = points[rng.permutation(len(points))]

    return points[:target_count]


def minkowski_transform(offsets: np.ndarray, power: float) -> np.ndarray:
    """
    Bend centred coordinates with a Minkowski (L-p) norm.

    Each component ``v`` becomes ``v * |v| / ||(x, y)||_p``. Points at the
    origin are left where they are.
    """
    magnitudes = np.abs(offsets)
    scale = np.power(np.sum(np.power(magnitudes, power), axis=1), 1.0 / power)
    scale = scale[:, np.newaxis]

    transformed = offsets * magnitudes
    return np.divide(transformed, scale, out=offsets.copy(), where=scale > 0)


def distort_points(points: np.ndarray, width: float, height: float,
                   power: float, randomness: float,
                   rng: np.random.Generator) -> np.ndarray:
    """
    Apply per-point random scaling and the Minkowski transform.

    Points may end up outside the map; they still own the clipped cell at
    the map edge. Exact duplicates are dropped.
    """
    if len(points) == 0:
        return points

    center = np.array([width / 2, height / 2])
    random_scale = 1 + rng.random(len(points)) * randomness

    offsets = (points - center) * random_scale[:, np.newaxis]
    distorted = minkowski_transform(offsets, power) + center

    outside = ~((distorted[:, 0] >= 0) & (distorted[:, 0] <= width) &
                (distorted[:, 1] >= 0) & (distorted[:, 1] <= height))
    logger.debug("Distorted points", total=len(distorted), outside=int(np.sum(outside)))

    _, first_seen = np.unique(distorted, axis=0, return_index=True)
    return distorted[np.sort(first_seen)]


def get_enclosing_points(points: np.ndarray, width: float, height: float) -> np.ndarray:
    """
    Four far-away points surrounding the map and every sampled point.

    They make each sampled point's Voronoi region finite. They sit further
    from the map than any sampled point can be, so none of them owns part of
    the map rectangle.
    """
    center = np.array([width / 2, height / 2])
    reach = float(np.max(np.linalg.norm(points - center, axis=1))) + math.hypot(width, height)
    offset = 4 * reach
    corners = np.array([[-1, -1], [1, -1], [1, 1], [-1, 1]], dtype=float)
    return center + corners * offset


def _order_around_center(vertices: np.ndarray) -> np.ndarray:
    """Sort convex polygon vertices by angle around their mean."""
    center = vertices.mean(axis=0)
    angles = np.arctan2(vertices[:, 1] - center[1], vertices[:, 0] - center[0])
    return vertices[np.argsort(angles)]


def _to_cell(polygon: ShapelyPolygon) -> Optional[Cell]:
    """Rounded vertex tuple of a clipped polygon, or None if degenerate."""
    coords = np.round(np.asarray(orient(polygon).exterior.coords)[:-1], VERTEX_DECIMALS)

    cell = []
    for x, y in coords:
        vertex = (float(x), float(y))
        if not cell or cell[-1] != vertex:
            cell.append(vertex)
    if len(cell) > 1 and cell[0] == cell[-1]:
        cell.pop()

    if len(cell) < 3 or polygon_area(cell) == 0:
        return None
    return tuple(cell)


def build_cell_polygons(vor: Voronoi, n_points: int, width: float,
                        height: float) -> List[Cell]:
    """
    Clip the Voronoi region of each sampled point to the map rectangle.

    Args:
        vor: scipy Voronoi diagram of points followed by the enclosing points
        n_points: Number of sampled points
        width: Map width
        height: Map height

    Returns:
        List of cells as tuples of (x, y) tuples; regions that miss the map
        are skipped
    """
    region_box = box(0, 0, width, height)

    cells = []
    for i in range(n_points):
        region = vor.regions[vor.point_region[i]]
        if -1 in region or len(region) < 3:
            continue

        vertices = _order_around_center(vor.vertices[region])
        clipped = region_box.intersection(ShapelyPolygon(vertices))
        if clipped.is_empty or clipped.geom_type != "Polygon":
            continue

        cell = _to_cell(clipped)
        if cell is not None:
            cells.append(cell)

    return cells


def generate_tessellation(width: float, height: float, target_count: int,
                          distortion_power: float = 2.0, randomness: float = 0.0,
                          seed: Seed = None) -> List[Cell]:
    """
    Generate disjoint convex cells covering the map rectangle.

    Args:
        width: Map width
        height: Map height
        target_count: Desired number of cells (an upper bound)
        distortion_power: Minkowski power used to bend point density
        randomness: Irregularity; tightens spacing and scales points by
                    a random factor in [1, 1 + randomness]
        seed: Random seed or generator

    Returns:
        List of cells; may hold fewer than ``target_count`` entries
    """
    if width <= 0 or height <= 0:
        raise ValueError("Tessellation width and height must be positive")
    if target_count < 1:
        raise ValueError("Tessellation target_count must be at least 1")

    rng = create_rng(seed)

    min_distance = compute_min_distance(width, height, target_count, randomness)
    logger.info("Generating tessellation",
                width=width, height=height, target_count=target_count,
                distortion_power=distortion_power, randomness=randomness,
                min_distance=round(min_distance, 2))

    points = sample_blue_noise(width, height, target_count, min_distance, rng)
    points = distort_points(points, width, height, distortion_power, randomness, rng)

    if len(points) == 0:
        logger.warning("No points left to tessellate")
        return []

    all_points = np.vstack([points, get_enclosing_points(points, width, height)])
    vor = Voronoi(all_points)

    cells = build_cell_polygons(vor, len(points), width, height)
    logger.info("Tessellation generated", points=len(points), cells=len(cells))
    return cells


def generate_tessellation_from_config(config: TessellationConfig,
                                      seed: Seed = None) -> List[Cell]:
    """Generate a tessellation from a TessellationConfig."""
    return generate_tessellation(
        config.width,
        config.height,
        config.target_count,
        distortion_power=config.distortion_power,
        randomness=config.randomness,
        seed=seed,
    )
