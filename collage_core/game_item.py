"""
Game item data structures for Playtime Collage.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GameItem:
    """A single owned game with its playtime weight (minutes played)."""
    
    id: int
    name: str
    weight: int = 0


@dataclass(frozen=True)
class SizedItem:
    """A game item with its collage cell dimensions."""
    
    item: GameItem
    width: float
    height: float
    tier: int = 1
    
    @property
    def id(self) -> int:
        return self.item.id
    
    @property
    def name(self) -> str:
        return self.item.name
    
    @property
    def weight(self) -> int:
        return self.item.weight
    
    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class PlacedItem:
    """A sized item placed at its top-left canvas coordinate."""
    
    sized: SizedItem
    x: float
    y: float
    
    @property
    def id(self) -> int:
        return self.sized.id
    
    @property
    def name(self) -> str:
        return self.sized.name
    
    @property
    def weight(self) -> int:
        return self.sized.weight
    
    @property
    def width(self) -> float:
        return self.sized.width
    
    @property
    def height(self) -> float:
        return self.sized.height
    
    @property
    def tier(self) -> int:
        return self.sized.tier
    
    @property
    def right(self) -> float:
        return self.x + self.width
    
    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class FreeRect:
    """Unused canvas region available for placement."""
    
    x: float
    y: float
    width: float
    height: float
    
    @property
    def area(self) -> float:
        return self.width * self.height
    
    def contains(self, other: "FreeRect") -> bool:
        """Check if this rectangle fully covers another one."""
        return (self.x <= other.x and self.y <= other.y and
                self.x + self.width >= other.x + other.width and
                self.y + self.height >= other.y + other.height)
    
    def fits(self, width: float, height: float) -> bool:
        """Check if a cell of the given size fits inside this rectangle."""
        return width <= self.width and height <= self.height
