"""
Packing algorithms for Playtime Collage.
Free-rectangle best-area-fit packing with a shelf fill-in pass, plus a
uniform grid fallback.
"""

import math
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from .game_item import GameItem, SizedItem, PlacedItem, FreeRect
from .sizing import (CanvasSpec, SizeModel, SizeSpec, DEFAULT_ASPECT_RATIO,
                     canvas_size, normalize_weight)


JITTER_SEED = 1337.123


class LayoutMode(Enum):
    """Supported layout modes."""
    FREE_RECT = "freerect"
    GRID = "grid"


class SplitStrategy(Enum):
    """Guillotine split orientation after a placement."""
    HORIZONTAL = "horizontal"  # Bottom remainder spans the full free rect width
    VERTICAL = "vertical"  # Right remainder spans the full free rect height


@dataclass
class LayoutSpec:
    """Layout specification."""
    mode: LayoutMode = LayoutMode.FREE_RECT
    split: SplitStrategy = SplitStrategy.HORIZONTAL
    jitter: bool = True  # Deterministic reordering within a size class
    header_height: int = 0  # Band reserved at the top for the info bar
    aspect_ratio: float = DEFAULT_ASPECT_RATIO  # Cell aspect for grid mode
    max_attempts: int = 12  # Sizing attempts before accepting dropped items
    shrink_factor: float = 0.85  # Target area scale between attempts
    
    def __post_init__(self):
        """Normalize enum values and validate."""
        if isinstance(self.mode, str):
            self.mode = LayoutMode(self.mode)
        if isinstance(self.split, str):
            self.split = SplitStrategy(self.split)
        if self.header_height < 0:
            raise ValueError(f"Header height must not be negative, got {self.header_height}")
        if self.aspect_ratio <= 0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if self.max_attempts < 1:
            raise ValueError(f"Max attempts must be at least 1, got {self.max_attempts}")
        if not (0 < self.shrink_factor < 1):
            raise ValueError(f"Shrink factor must be in (0, 1), got {self.shrink_factor}")


@dataclass
class PackingResult:
    """Result of a collage layout."""
    canvas_width: int
    canvas_height: int
    placements: List[PlacedItem]
    dropped: List[SizedItem]  # Items no free region could hold
    free_rects: List[FreeRect]  # Voids left after packing
    mode: LayoutMode
    layout_spec: LayoutSpec = field(default_factory=LayoutSpec)
    
    @property
    def placed_count(self) -> int:
        return len(self.placements)
    
    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


def jitter_for(item_id: int) -> float:
    """Reproducible pseudo-random value in [0, 1] derived from an item id."""
    return abs(math.sin(item_id * JITTER_SEED))


def sort_for_packing(items: Sequence[SizedItem], jitter: bool = True) -> List[SizedItem]:
    """
    Order items for the primary pass: tallest first.
    
    Items of equal height are shuffled by their id jitter when enabled, then
    by heavier weight and lower id.
    """
    def key(sized: SizedItem):
        perturbation = jitter_for(sized.id) if jitter else 0.0
        return (-sized.height, perturbation, -normalize_weight(sized.weight), sized.id)
    
    return sorted(items, key=key)


def sort_for_fill_in(items: Sequence[SizedItem]) -> List[SizedItem]:
    """Order leftover items smallest first."""
    return sorted(items, key=lambda sized: (sized.area, sized.height, sized.id))


class FreeRectSet:
    """Owned collection of free canvas regions."""
    
    def __init__(self, rects: Sequence[FreeRect] = ()):
        self.rects: List[FreeRect] = []
        for rect in rects:
            self.add(rect)
    
    def __len__(self) -> int:
        return len(self.rects)
    
    def __iter__(self) -> Iterator[FreeRect]:
        return iter(self.rects)
    
    def __contains__(self, rect: FreeRect) -> bool:
        return rect in self.rects
    
    @property
    def total_area(self) -> float:
        return sum(rect.area for rect in self.rects)
    
    def add(self, rect: FreeRect) -> bool:
        """Add a region; zero-area regions are ignored."""
        if rect.width <= 0 or rect.height <= 0:
            return False
        self.rects.append(rect)
        return True
    
    def remove(self, rect: FreeRect):
        self.rects.remove(rect)
    
    def ordered(self) -> List[FreeRect]:
        """Regions top-to-bottom, then left-to-right."""
        return sorted(self.rects, key=lambda r: (r.y, r.x))
    
    def best_fit(self, width: float, height: float) -> Optional[FreeRect]:
        """
        Find the region that wastes the least area for a cell.
        
        Ties go to the higher region, then the one further left.
        
        Returns:
            Best region, or None if no region can hold the cell
        """
        best = None
        best_score = None
        cell_area = width * height
        for rect in self.rects:
            if not rect.fits(width, height):
                continue
            score = (rect.area - cell_area, rect.y, rect.x)
            if best_score is None or score < best_score:
                best = rect
                best_score = score
        return best
    
    def split(self, rect: FreeRect, width: float, height: float,
              strategy: SplitStrategy = SplitStrategy.HORIZONTAL):
        """
        Consume a cell at the region's top-left corner (guillotine split).
        
        The region is replaced by its right and bottom remainders, which
        together with the cell tile the original region exactly.
        """
        self.remove(rect)
        
        if strategy == SplitStrategy.HORIZONTAL:
            right = FreeRect(rect.x + width, rect.y, rect.width - width, height)
            bottom = FreeRect(rect.x, rect.y + height, rect.width, rect.height - height)
        else:
            right = FreeRect(rect.x + width, rect.y, rect.width - width, rect.height)
            bottom = FreeRect(rect.x, rect.y + height, width, rect.height - height)
        
        self.add(right)
        self.add(bottom)
        self.prune()
    
    def prune(self):
        """Drop regions fully covered by another region."""
        i = 0
        while i < len(self.rects):
            candidate = self.rects[i]
            covered = any(
                j != i and other.contains(candidate)
                for j, other in enumerate(self.rects)
            )
            if covered:
                del self.rects[i]
            else:
                i += 1


class CollagePacker:
    """Layout engine for playtime collages."""
    
    def __init__(self, layout_spec: LayoutSpec = None, size_spec: SizeSpec = None,
                 canvas_spec: CanvasSpec = None):
        """
        Initialize packer.
        
        Args:
            layout_spec: Layout mode and packing options
            size_spec: Size model options
            canvas_spec: Canvas sizing constants
        """
        self.layout_spec = layout_spec or LayoutSpec()
        self.size_model = SizeModel(size_spec)
        self.canvas_spec = canvas_spec or CanvasSpec()
        self.logger = logging.getLogger(__name__)
    
    def layout(self, items: Sequence[GameItem]) -> PackingResult:
        """
        Size and pack game items on a canvas derived from their count.

        Cells are shrunk and repacked while items are still dropped, up to
        max_attempts; the last attempt is returned as is.

        Args:
            items: Game items (already aggregated by id)

        Returns:
            PackingResult with placements and dropped items
        """
        canvas_width, canvas_height = canvas_size(len(items), self.canvas_spec)
        self.logger.info(f"Canvas for {len(items)} games: {canvas_width}x{canvas_height}")

        fill_ratio = 1.0
        result = None
        for attempt in range(1, self.layout_spec.max_attempts + 1):
            sized = self.size_model.size_items(items, canvas_width, canvas_height,
                                               self.layout_spec.header_height, fill_ratio)
            result = self.pack(sized, canvas_width, canvas_height)
            if not result.dropped:
                break
            self.logger.info(f"Attempt {attempt}: {result.dropped_count} items dropped at fill ratio {fill_ratio:.3f}")
            fill_ratio *= self.layout_spec.shrink_factor

        return result
    
    def pack(self, items: Sequence[SizedItem], canvas_width: int, canvas_height: int,
             presorted: bool = False) -> PackingResult:
        """
        Pack sized items into a fixed canvas.
        
        Args:
            items: Sized items
            canvas_width: Canvas width in pixels
            canvas_height: Canvas height in pixels
            presorted: Keep the given order instead of sorting tallest first
            
        Returns:
            PackingResult with optimal layout
        """
        self.logger.info(f"Packing {len(items)} items into {canvas_width}x{canvas_height} "
                         f"canvas ({self.layout_spec.mode.value})")
        
        ordered = list(items) if presorted else sort_for_packing(items, self.layout_spec.jitter)
        
        if self.layout_spec.mode == LayoutMode.GRID:
            return self._pack_grid(ordered, canvas_width, canvas_height)
        elif self.layout_spec.mode == LayoutMode.FREE_RECT:
            return self._pack_free_rect(ordered, canvas_width, canvas_height)
        else:
            raise ValueError(f"Unsupported layout mode: {self.layout_spec.mode}")
    
    def _pack_free_rect(self, items: List[SizedItem], canvas_width: int, canvas_height: int) -> PackingResult:
        """Best-area-fit primary pass followed by the shelf fill-in pass."""
        header = self.layout_spec.header_height
        free_rects = FreeRectSet([FreeRect(0, header, canvas_width, canvas_height - header)])
        
        placements, overflow = self.place_best_fit(items, free_rects)
        self.logger.info(f"Primary pass placed {len(placements)} items, {len(overflow)} overflow")
        
        dropped = self.fill_in(overflow, free_rects, placements)
        if dropped:
            self.logger.info(f"Fill-in pass left {len(dropped)} items unplaced")
        
        return PackingResult(
            canvas_width=canvas_width,
            canvas_height=canvas_height,
            placements=placements,
            dropped=dropped,
            free_rects=free_rects.ordered(),
            mode=LayoutMode.FREE_RECT,
            layout_spec=self.layout_spec
        )
    
    def place_best_fit(self, items: List[SizedItem], free_rects: FreeRectSet) -> Tuple[List[PlacedItem], List[SizedItem]]:
        """Place each item in its best-area-fit region, collecting misses."""
        placements = []
        overflow = []
        
        for sized in items:
            target = free_rects.best_fit(sized.width, sized.height)
            if target is None:
                overflow.append(sized)
                continue
            
            placements.append(PlacedItem(sized=sized, x=target.x, y=target.y))
            free_rects.split(target, sized.width, sized.height, self.layout_spec.split)
        
        return placements, overflow
    
    def fill_in(self, overflow: List[SizedItem], free_rects: FreeRectSet,
                 placements: List[PlacedItem]) -> List[SizedItem]:
        """
        Shelf-fill leftover regions with overflow items.
        
        Sweeps the free regions top-down until a sweep places nothing.
        
        Returns:
            Items that still could not be placed
        """
        remaining = sort_for_fill_in(overflow)
        
        while remaining:
            placed_any = False
            for rect in free_rects.ordered():
                if not remaining:
                    break
                if rect not in free_rects:
                    continue
                if self._fill_rect_with_shelves(rect, remaining, free_rects, placements):
                    placed_any = True
            if not placed_any:
                break
        
        return remaining
    
    def _fill_rect_with_shelves(self, rect: FreeRect, remaining: List[SizedItem],
                                free_rects: FreeRectSet, placements: List[PlacedItem]) -> bool:
        """Fill one region with rows of the smallest remaining items."""
        free_rects.remove(rect)
        
        x, y, width, height = rect.x, rect.y, rect.width, rect.height
        placed_any = False
        
        while True:
            candidates = [s for s in remaining if s.width <= width and s.height <= height]
            if not candidates:
                break
            shelf_height = min(s.height for s in candidates)
            
            cursor = x
            space = width
            row_placed = 0
            
            # Narrowest item that still fits, until the row is full
            while True:
                found = None
                for index, sized in enumerate(remaining):
                    if sized.width <= space and sized.height <= shelf_height:
                        if found is None or sized.width < remaining[found].width:
                            found = index
                if found is None:
                    break
                
                sized = remaining.pop(found)
                placements.append(PlacedItem(sized=sized, x=cursor, y=y))
                cursor += sized.width
                space -= sized.width
                row_placed += 1
            
            if row_placed == 0:
                break
            
            # Right end of the shelf stays available
            free_rects.add(FreeRect(cursor, y, space, shelf_height))
            
            y += shelf_height
            height -= shelf_height
            placed_any = True
        
        free_rects.add(FreeRect(x, y, width, height))
        free_rects.prune()
        return placed_any
    
    def _pack_grid(self, items: List[SizedItem], canvas_width: int, canvas_height: int) -> PackingResult:
        """Place items row-major in a uniform grid of equal cells."""
        header = self.layout_spec.header_height
        if not items:
            return PackingResult(canvas_width, canvas_height, [], [], [], LayoutMode.GRID, self.layout_spec)
        
        num_items = len(items)
        usable_height = max(1, canvas_height - header)
        aspect = self.layout_spec.aspect_ratio
        
        columns = math.ceil(math.sqrt(num_items))
        rows = math.ceil(num_items / columns)
        
        cell_width = max(1, canvas_width // columns)
        cell_height = max(1, int(cell_width / aspect))
        if rows * cell_height > usable_height:
            cell_height = max(1, usable_height // rows)
            cell_width = max(1, int(cell_height * aspect))
        
        self.logger.info(f"Grid: {rows}x{columns}, cell {cell_width}x{cell_height}")
        
        placements = []
        for i, sized in enumerate(items):
            row = i // columns
            col = i % columns
            cell = SizedItem(item=sized.item, width=cell_width, height=cell_height, tier=sized.tier)
            placements.append(PlacedItem(sized=cell, x=col * cell_width, y=header + row * cell_height))
        
        return PackingResult(
            canvas_width=canvas_width,
            canvas_height=canvas_height,
            placements=placements,
            dropped=[],
            free_rects=[],
            mode=LayoutMode.GRID,
            layout_spec=self.layout_spec
        )
