"""
Size model and canvas sizing for Playtime Collage.
Maps playtime weights to cell dimensions and item counts to canvas dimensions.
"""

import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .game_item import GameItem, SizedItem


logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = 2 / 3  # Library capsule art (600x900)
DEFAULT_UNIT_AREA = 10000.0
MAX_WEIGHT = 10 ** 9  # Minutes; ceiling for absurd or infinite playtime


class SizeScale(Enum):
    """Supported weight-to-area scales."""
    TIERED = "tiered"
    LINEAR = "linear"


@dataclass
class SizeSpec:
    """Size model specification."""
    aspect_ratio: float = DEFAULT_ASPECT_RATIO  # Cell width / height
    scale: SizeScale = SizeScale.TIERED
    tiers: int = 8  # Number of discrete side multipliers
    min_tier_weight: int = 600  # Below 10 hours everything collapses to tier 1
    quantize: bool = True  # Snap unit cell so canvas width is a whole multiple
    
    def __post_init__(self):
        """Validate size parameters."""
        if isinstance(self.scale, str):
            self.scale = SizeScale(self.scale)
        if self.aspect_ratio <= 0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if self.tiers < 1:
            raise ValueError(f"Tier count must be at least 1, got {self.tiers}")


@dataclass
class CanvasSpec:
    """Canvas sizing constants (portrait, mobile friendly)."""
    base_width: int = 1080
    base_height: int = 1920
    baseline_count: int = 10  # Items covered by the base area
    area_per_item: int = 50000  # Roughly a 220x220 cell per extra item
    aspect_ratio: float = 9 / 16
    min_width: int = 1080
    max_width: int = 4320
    min_height: int = 1920
    max_height: int = 7680
    grid: int = 100  # Rounding step
    
    def __post_init__(self):
        """Validate canvas bounds."""
        if self.aspect_ratio <= 0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if self.grid < 1:
            raise ValueError(f"Rounding grid must be at least 1, got {self.grid}")
        if not (0 < self.min_width <= self.max_width):
            raise ValueError(f"Invalid width bounds: [{self.min_width}, {self.max_width}]")
        if not (0 < self.min_height <= self.max_height):
            raise ValueError(f"Invalid height bounds: [{self.min_height}, {self.max_height}]")


def round_half_up(value: float) -> int:
    """Round to nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def normalize_weight(weight) -> int:
    """
    Clamp a raw playtime value to a valid weight.
    
    Negative, missing or non-numeric values become 1 so a single bad record
    never produces a zero-area cell. Values above MAX_WEIGHT (including
    positive infinity) are capped at MAX_WEIGHT so sizing stays monotonic.
    """
    try:
        value = int(weight)
    except OverflowError:
        value = MAX_WEIGHT if weight > 0 else 1
        logger.debug(f"Non-finite weight {weight!r}, using {value}")
        return value
    except (TypeError, ValueError):
        logger.debug(f"Invalid weight {weight!r}, using 1")
        return 1
    return min(max(value, 1), MAX_WEIGHT)


def canvas_size(item_count: int, spec: CanvasSpec = None) -> Tuple[int, int]:
    """
    Calculate canvas dimensions for a number of items.
    
    Args:
        item_count: Number of items to lay out
        spec: Canvas constants (defaults to the portrait deployment values)
        
    Returns:
        (width, height) in pixels
    """
    spec = spec or CanvasSpec()
    if item_count <= 0:
        return spec.min_width, spec.min_height
    
    extra = max(0, item_count - spec.baseline_count)
    total_area = spec.base_width * spec.base_height + extra * spec.area_per_item
    
    width = math.sqrt(total_area * spec.aspect_ratio)
    height = width / spec.aspect_ratio
    
    final_width = max(spec.min_width, min(spec.max_width, round_half_up(width / spec.grid) * spec.grid))
    final_height = max(spec.min_height, min(spec.max_height, round_half_up(height / spec.grid) * spec.grid))
    return final_width, final_height


def size_of(weight, aspect_ratio: float = DEFAULT_ASPECT_RATIO,
            unit_area: float = DEFAULT_UNIT_AREA) -> Tuple[float, float]:
    """
    Linear size model: area grows in proportion to weight.
    
    Args:
        weight: Minutes played (clamped to at least 1)
        aspect_ratio: Cell width / height
        unit_area: Area of a one-minute cell
        
    Returns:
        (width, height) of the cell
    """
    if aspect_ratio <= 0:
        raise ValueError(f"Aspect ratio must be positive, got {aspect_ratio}")
    if unit_area <= 0:
        raise ValueError(f"Unit area must be positive, got {unit_area}")
    
    area = unit_area * normalize_weight(weight)
    height = math.sqrt(area / aspect_ratio)
    width = height * aspect_ratio
    return width, height


def tier_for(weight, max_weight, tiers: int = 8, min_tier_weight: int = 600) -> int:
    """
    Quantize a weight into a side multiplier.
    
    Square-root normalized against the heaviest item so that area (side
    squared) stays roughly proportional to playtime.
    """
    weight = normalize_weight(weight)
    max_weight = max(normalize_weight(max_weight), weight)
    
    normalized = math.sqrt(weight) / math.sqrt(max_weight)
    tier = max(1, round_half_up(normalized * tiers))
    if weight >= min_tier_weight:
        return max(tier, 2)
    return 1


class SizeModel:
    """Turns game items into sized collage cells."""
    
    def __init__(self, spec: SizeSpec = None):
        """
        Initialize size model.
        
        Args:
            spec: Size specification (defaults to 8-tier capsule cells)
        """
        self.spec = spec or SizeSpec()
        self.logger = logging.getLogger(__name__)
    
    def size_items(self, items: Sequence[GameItem], canvas_width: int, canvas_height: int,
                   header_height: int = 0, fill_ratio: float = 1.0) -> List[SizedItem]:
        """
        Size every item for the given canvas.
        
        Args:
            items: Game items to size
            canvas_width: Canvas width in pixels
            canvas_height: Canvas height in pixels
            header_height: Band at the top of the canvas not available to cells
            fill_ratio: Share of the usable canvas area the cells should cover
            
        Returns:
            Sized items in input order
        """
        if not items:
            return []
        
        usable_height = max(1, canvas_height - header_height)
        if self.spec.scale == SizeScale.LINEAR:
            return self._size_linear(items, canvas_width, usable_height, fill_ratio)
        return self._size_tiered(items, canvas_width, usable_height, fill_ratio)
    
    def _tiers(self, weights: List[int]) -> List[int]:
        max_weight = max(weights)
        return [tier_for(w, max_weight, self.spec.tiers, self.spec.min_tier_weight) for w in weights]
    
    def _size_tiered(self, items: Sequence[GameItem], canvas_width: int, usable_height: int,
                     fill_ratio: float = 1.0) -> List[SizedItem]:
        """Size items as integer multiples of a shared unit cell."""
        aspect = self.spec.aspect_ratio
        weights = [normalize_weight(item.weight) for item in items]
        tiers = self._tiers(weights)
        max_tier = max(tiers)
        
        # Unit cell so that all tiers together roughly cover the canvas
        total_units = sum(t * t for t in tiers)
        unit_area = canvas_width * usable_height * fill_ratio / max(total_units, 1)
        unit_height = math.sqrt(unit_area / aspect)
        unit_width = unit_height * aspect
        
        # Largest cell must fit the canvas
        scale = min(1.0, canvas_width / (max_tier * unit_width), usable_height / (max_tier * unit_height))
        unit_width *= scale
        unit_height *= scale
        
        if self.spec.quantize:
            columns = max(1, int(canvas_width // max(unit_width, 1)))
            while True:
                unit_width = max(1, canvas_width // columns)
                unit_height = max(1, round_half_up(unit_width / aspect))
                if max_tier * unit_height <= usable_height or unit_width == 1:
                    break
                columns += 1
            self.logger.debug(f"Unit cell quantized to {unit_width}x{unit_height} ({columns} columns)")
        
        return [
            SizedItem(item=item, width=tier * unit_width, height=tier * unit_height, tier=tier)
            for item, tier in zip(items, tiers)
        ]
    
    def _size_linear(self, items: Sequence[GameItem], canvas_width: int, usable_height: int,
                     fill_ratio: float = 1.0) -> List[SizedItem]:
        """Size items with area proportional to weight."""
        aspect = self.spec.aspect_ratio
        weights = [normalize_weight(item.weight) for item in items]
        tiers = self._tiers(weights)
        
        unit_area = canvas_width * usable_height * fill_ratio / sum(weights)
        sizes = [size_of(w, aspect, unit_area) for w in weights]
        
        # Same aspect everywhere, so the heaviest item is both widest and tallest
        largest_width, largest_height = sizes[weights.index(max(weights))]
        scale = min(1.0, canvas_width / largest_width, usable_height / largest_height)
        
        # Whole pixels keep neighbouring edges exactly aligned
        return [
            SizedItem(item=item, width=max(1, int(w * scale)), height=max(1, int(h * scale)), tier=tier)
            for item, (w, h), tier in zip(items, sizes, tiers)
        ]
