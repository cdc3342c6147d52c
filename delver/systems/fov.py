"""Symmetric recursive shadowcasting.

Each of the 8 octants is scanned row by row moving away from the origin.
A row carries an interval of slopes [start, end] (exact Fractions); tiles in
the row whose column range touches the interval are examined. Walls narrow
the interval for the next row or split it in two (the split half recurses).

Visibility rules:
  * a floor tile is visible only when its *center* lies inside the interval.
    That is what makes floor-to-floor visibility symmetric: if A sees B,
    B sees A.
  * a wall tile is visible when any part of it lies inside the interval, so
    room walls light up fully.
  * corners: two walls touching only at a corner leave a gap of exactly one
    slope, so sight passes diagonally between them. Movement follows the
    same rule (diagonal steps between such walls are allowed).
  * tiles farther than `radius` (Euclidean) are never visible, and anything
    off the map is opaque.
"""
from __future__ import annotations

import math
from fractions import Fraction
from typing import Callable, FrozenSet, Iterable, Iterator, Optional, Set, Tuple, Union

from delver.state.level import Level
from delver.state.world import Pos, World

# (xx, xy, yx, yy): dx = col*xx + row*xy, dy = col*yx + row*yy
OCTANTS: Tuple[Tuple[int, int, int, int], ...] = (
    (1, 0, 0, 1),
    (0, 1, 1, 0),
    (0, -1, 1, 0),
    (-1, 0, 0, 1),
    (-1, 0, 0, -1),
    (0, -1, -1, 0),
    (0, 1, -1, 0),
    (1, 0, 0, -1),
)

Grid = Union[Level, World]


def _round_ties_up(n: Fraction) -> int:
    return math.floor(n + Fraction(1, 2))


def _round_ties_down(n: Fraction) -> int:
    return math.ceil(n - Fraction(1, 2))


def _slope(depth: int, col: int) -> Fraction:
    # slope of the tile's near-left edge
    return Fraction(2 * col - 1, 2 * depth)


class _Row:
    __slots__ = ("depth", "start", "end")

    def __init__(self, depth: int, start: Fraction, end: Fraction) -> None:
        self.depth = depth
        self.start = start
        self.end = end

    def cols(self) -> Iterator[int]:
        lo = _round_ties_up(self.depth * self.start)
        hi = _round_ties_down(self.depth * self.end)
        return iter(range(lo, hi + 1))

    def centered(self, col: int) -> bool:
        return self.depth * self.start <= col <= self.depth * self.end

    def next(self) -> "_Row":
        return _Row(self.depth + 1, self.start, self.end)


def _scan_octant(
    origin: Pos,
    octant: Tuple[int, int, int, int],
    radius: int,
    opaque: Callable[[int, int], bool],
    reveal: Callable[[int, int], None],
) -> None:
    ox, oy = origin
    xx, xy, yx, yy = octant
    r2 = radius * radius

    def to_map(depth: int, col: int) -> Pos:
        return (ox + col * xx + depth * xy, oy + col * yx + depth * yy)

    def scan(row: _Row) -> None:
        if row.depth > radius:
            return
        prev_wall: Optional[bool] = None
        for col in row.cols():
            x, y = to_map(row.depth, col)
            wall = opaque(x, y)
            if (wall or row.centered(col)) and row.depth * row.depth + col * col <= r2:
                reveal(x, y)
            if prev_wall is True and not wall:
                row.start = _slope(row.depth, col)
            if prev_wall is False and wall:
                below = row.next()
                below.end = _slope(row.depth, col)
                scan(below)
            prev_wall = wall
        if prev_wall is False:
            scan(row.next())

    scan(_Row(1, Fraction(0), Fraction(1)))


def _world_of(grid: Grid) -> World:
    return grid.world if isinstance(grid, Level) else grid


def compute_visible(grid: Grid, origin: Pos, radius: int) -> Set[Pos]:
    """Positions visible from `origin` within `radius` tiles."""
    world = _world_of(grid)
    world.require(origin)
    visible: Set[Pos] = {origin}

    def reveal(x: int, y: int) -> None:
        if world.in_bounds(x, y):
            visible.add((x, y))

    if radius <= 0:
        return visible
    for octant in OCTANTS:
        _scan_octant(origin, octant, radius, world.blocks_sight, reveal)
    return visible


def can_see(grid: Grid, a: Pos, b: Pos, radius: int) -> bool:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    if dx * dx + dy * dy > radius * radius:
        return False
    return b in compute_visible(grid, a, radius)


def update_fov(level: Level, origin: Pos, radius: int) -> Set[Pos]:
    """Recompute `visible` flags and mark newly seen tiles explored."""
    world = level.world
    world.clear_visibility()
    visible = compute_visible(world, origin, radius)
    for pos in visible:
        tile = world.tile(pos)
        tile.visible = True
        tile.explored = True
    return visible


# --- FOV memory (explored flags) ---

FovMemory = FrozenSet[Pos]


def explored_memory(level: Level) -> FovMemory:
    return frozenset(pos for pos in level.world.positions() if level.world.tile(pos).explored)


def restore_memory(level: Level, memory: Iterable[Pos]) -> None:
    world = level.world
    for row in world.tiles:
        for tile in row:
            tile.explored = False
    for pos in memory:
        world.tile(pos).explored = True
