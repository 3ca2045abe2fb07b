"""
Incremental zone rendering.

The orchestrator hands every zone to a renderer right after it enters the
zone table. The matplotlib renderer draws onto an off-screen Agg canvas and
can export the current state as PNG at any time.
"""

import io
import threading
from typing import List, Protocol

import structlog
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import is_color_like
from matplotlib.figure import Figure
from matplotlib.patches import Polygon as PolygonPatch

from ..core.zones import Zone

logger = structlog.get_logger()

DEFAULT_COLOR = "#888888"
FILL_ALPHA = 0.8
SPECIAL_OUTLINE_WIDTH = 2.5


class ZoneRenderer(Protocol):
    """Receives each zone as soon as it is placed."""

    def draw_zone(self, zone: Zone) -> None:
        ...


class RecordingRenderer:
    """Renderer that only remembers the zones it was given."""

    def __init__(self):
        self.drawn: List[Zone] = []

    def draw_zone(self, zone: Zone) -> None:
        self.drawn.append(zone)


class MatplotlibZoneRenderer:
    """Draws zones as filled polygons on an off-screen figure."""

    def __init__(self, width: float = 1000, height: float = 1000, dpi: int = 100):
        self.width = width
        self.height = height
        self.zones_drawn = 0
        self._lock = threading.Lock()

        self.figure = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        self.canvas = FigureCanvasAgg(self.figure)
        self.axes = self.figure.add_axes([0, 0, 1, 1])
        self.axes.set_xlim(0, width)
        # Screen coordinates: y grows downwards
        self.axes.set_ylim(height, 0)
        self.axes.set_axis_off()
        self.axes.set_facecolor("white")

    def draw_zone(self, zone: Zone) -> None:
        if len(zone.boundary) < 3:
            return

        color = zone.display_color if is_color_like(zone.display_color) else DEFAULT_COLOR
        with self._lock:
            self.axes.add_patch(PolygonPatch(
                zone.boundary, closed=True, facecolor=color, alpha=FILL_ALPHA, linewidth=0,
            ))
            if zone.is_special:
                self.axes.add_patch(PolygonPatch(
                    zone.boundary, closed=True, fill=False, edgecolor=color,
                    linewidth=SPECIAL_OUTLINE_WIDTH,
                ))
            self.zones_drawn += 1

    def to_png(self) -> bytes:
        """Render the current figure to PNG bytes."""
        buffer = io.BytesIO()
        with self._lock:
            self.figure.savefig(buffer, format="png")
        logger.debug("Map image rendered", zones=self.zones_drawn)
        return buffer.getvalue()
