"""
Zone rendering.
"""

from .renderer import MatplotlibZoneRenderer, RecordingRenderer, ZoneRenderer

__all__ = ['MatplotlibZoneRenderer', 'RecordingRenderer', 'ZoneRenderer']
