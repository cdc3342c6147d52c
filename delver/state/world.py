from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from delver.errors import OutOfBoundsAccess

Pos = Tuple[int, int]


class TileKind(Enum):
    WALL = "#"
    FLOOR = "."
    STAIRS_DOWN = ">"
    STAIRS_UP = "<"

    @property
    def walkable(self) -> bool:
        return self is not TileKind.WALL

    @property
    def blocks_sight(self) -> bool:
        return self is TileKind.WALL


class Direction(Enum):
    N = (0, -1)
    S = (0, 1)
    E = (1, 0)
    W = (-1, 0)
    NE = (1, -1)
    NW = (-1, -1)
    SE = (1, 1)
    SW = (-1, 1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def step(self, pos: Pos) -> Pos:
        return (pos[0] + self.dx, pos[1] + self.dy)

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> Optional["Direction"]:
        for d in cls:
            if d.value == (dx, dy):
                return d
        return None

    @classmethod
    def toward(cls, origin: Pos, target: Pos) -> Optional["Direction"]:
        """Single step from origin toward target (None when they coincide)."""
        dx = (target[0] > origin[0]) - (target[0] < origin[0])
        dy = (target[1] > origin[1]) - (target[1] < origin[1])
        return cls.from_delta(dx, dy)


def chebyshev(a: Pos, b: Pos) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def distance2(a: Pos, b: Pos) -> int:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


@dataclass
class Tile:
    kind: TileKind = TileKind.WALL
    explored: bool = False
    # recomputed every FOV pass, never saved
    visible: bool = field(default=False, compare=False)

    @property
    def walkable(self) -> bool:
        return self.kind.walkable

    @property
    def glyph(self) -> str:
        return self.kind.value


def _make_grid(width: int, height: int) -> List[List[Tile]]:
    return [[Tile() for _ in range(width)] for _ in range(height)]


@dataclass
class World:
    """The tile grid of one dungeon level. Starts solid rock."""
    width: int
    height: int
    tiles: List[List[Tile]] = field(init=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"bad grid size {self.width}x{self.height}")
        self.tiles = _make_grid(self.width, self.height)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def require(self, pos: Pos) -> Pos:
        if not self.in_bounds(*pos):
            raise OutOfBoundsAccess(pos, self.width, self.height)
        return pos

    def tile(self, pos: Pos) -> Tile:
        x, y = self.require(pos)
        return self.tiles[y][x]

    def get_tile(self, x: int, y: int) -> Optional[Tile]:
        if not self.in_bounds(x, y):
            return None
        return self.tiles[y][x]

    def kind_at(self, pos: Pos) -> TileKind:
        return self.tile(pos).kind

    def set_kind(self, pos: Pos, kind: TileKind) -> None:
        self.tile(pos).kind = kind

    def is_walkable(self, x: int, y: int) -> bool:
        tile = self.get_tile(x, y)
        return bool(tile and tile.walkable)

    def blocks_sight(self, x: int, y: int) -> bool:
        # the edge of the map is as opaque as rock
        tile = self.get_tile(x, y)
        return tile is None or tile.kind.blocks_sight

    def clear_visibility(self) -> None:
        for row in self.tiles:
            for tile in row:
                tile.visible = False

    def positions(self, *kinds: TileKind) -> Iterator[Pos]:
        for y, row in enumerate(self.tiles):
            for x, tile in enumerate(row):
                if not kinds or tile.kind in kinds:
                    yield (x, y)

    def walkable_positions(self) -> Iterator[Pos]:
        return self.positions(TileKind.FLOOR, TileKind.STAIRS_DOWN, TileKind.STAIRS_UP)
