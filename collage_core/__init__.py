"""
Playtime Collage Core Package
Core functionality for packing game libraries into playtime-weighted collages.
"""

from .game_item import GameItem, SizedItem, PlacedItem, FreeRect
from .sizing import CanvasSpec, SizeSpec, SizeScale, SizeModel, canvas_size, size_of
from .packer import CollagePacker, LayoutSpec, LayoutMode, SplitStrategy, PackingResult, FreeRectSet
from .renderer import CollageRenderer

__all__ = [
    'GameItem',
    'SizedItem',
    'PlacedItem',
    'FreeRect',
    'CanvasSpec',
    'SizeSpec',
    'SizeScale',
    'SizeModel',
    'canvas_size',
    'size_of',
    'CollagePacker',
    'LayoutSpec',
    'LayoutMode',
    'SplitStrategy',
    'PackingResult',
    'FreeRectSet',
    'CollageRenderer'
]
