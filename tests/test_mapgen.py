"""Tests for dungeon generation."""

from collections import deque

import pytest

from delver.config import GameConfig
from delver.errors import GenerationFailure
from delver.mapgen import generate, layout, room_interior, rooms_intersect, stairs_position
from delver.state import PLAYER_ID, Direction, Level, TileKind


def _reachable(level: Level, start):
    seen = {start}
    queue = deque([start])
    while queue:
        pos = queue.popleft()
        for d in Direction:
            nxt = d.step(pos)
            if nxt not in seen and level.world.is_walkable(*nxt):
                seen.add(nxt)
                queue.append(nxt)
    return seen


@pytest.mark.parametrize("seed", [1, 2, 99, 12345])
def test_generation_is_deterministic(seed: int):
    assert generate(seed, 1) == generate(seed, 1)
    assert generate(seed, 3) == generate(seed, 3)


def test_different_seeds_give_different_maps():
    a = generate(1, 1)
    b = generate(2, 1)
    assert a.world.tiles != b.world.tiles


@pytest.mark.parametrize("seed", [3, 17, 4242])
@pytest.mark.parametrize("depth", [1, 2, 5])
def test_every_walkable_tile_is_reachable(seed: int, depth: int):
    level = generate(seed, depth)
    walkable = set(level.world.walkable_positions())
    assert _reachable(level, level.entry) == walkable
    assert level.stairs_down in walkable


@pytest.mark.parametrize("seed", [5, 6])
def test_level_is_consistent(seed: int):
    level = generate(seed, 1)
    level.check_invariants()
    assert level.player.pos == level.entry
    assert level.world.kind_at(level.stairs_down) is TileKind.STAIRS_DOWN
    assert len(list(level.world.positions(TileKind.STAIRS_DOWN))) == 1
    assert level.stairs_down != level.entry


def test_deeper_levels_start_on_the_previous_stairs():
    first = generate(8, 1)
    second = generate(8, 2)
    assert second.entry == first.stairs_down
    assert second.world.kind_at(second.entry) is TileKind.STAIRS_UP
    assert stairs_position(GameConfig(), 8, 2) == second.stairs_down


def test_ids_are_consecutive_from_first_id():
    level = generate(21, 4, first_id=50)
    ids = sorted([i for i in level.actors if i != PLAYER_ID] + list(level.items))
    assert ids == list(range(50, 50 + len(ids)))


def test_rooms_do_not_overlap():
    _, rooms = layout(GameConfig(), 77, 1, None)
    for i, a in enumerate(rooms):
        for b in rooms[i + 1:]:
            assert not rooms_intersect(a, b)


def test_spawn_room_holds_only_the_player():
    cfg = GameConfig()
    level = generate(31, 6, cfg)
    _, rooms = layout(cfg, 31, 6, stairs_position(cfg, 31, 5))
    spawn_room = set(room_interior(rooms[0]))
    assert level.entry in spawn_room
    assert [a.id for a in level.actors.values() if a.pos in spawn_room] == [PLAYER_ID]
    assert not [i for i in level.placed_items() if i.pos in spawn_room]


def test_population_grows_with_depth():
    shallow = sum(len(generate(s, 1).monsters()) for s in range(10))
    deep = sum(len(generate(s, 8).monsters()) for s in range(10))
    assert deep > shallow


def test_depth_must_be_positive():
    with pytest.raises(ValueError):
        generate(1, 0)


def test_cramped_map_fails_loudly():
    cfg = GameConfig(map_width=13, map_height=13, room_min=10, room_max=10, min_rooms=3)
    with pytest.raises(GenerationFailure):
        generate(1, 1, cfg)
