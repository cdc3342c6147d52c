"""Tests for the grid and the level model."""

import pytest

from delver.errors import InvariantViolation, OutOfBoundsAccess
from delver.state import Actor, Direction, Item, ItemKind, Level, TileKind, World

from conftest import open_level


def test_new_world_is_solid_rock():
    world = World(5, 4)
    assert all(tile.kind is TileKind.WALL for row in world.tiles for tile in row)
    assert not any(tile.explored for row in world.tiles for tile in row)


def test_out_of_bounds_access_raises():
    world = World(5, 4)
    assert not world.in_bounds(5, 0)
    assert world.get_tile(-1, 0) is None
    with pytest.raises(OutOfBoundsAccess):
        world.tile((5, 0))
    with pytest.raises(OutOfBoundsAccess):
        world.set_kind((0, 4), TileKind.FLOOR)


def test_edge_of_map_blocks_sight_and_movement():
    world = World(3, 3)
    world.set_kind((1, 1), TileKind.FLOOR)
    assert world.blocks_sight(-1, 1)
    assert not world.is_walkable(3, 1)
    assert world.is_walkable(1, 1)


def test_direction_toward():
    assert Direction.toward((0, 0), (5, -2)) is Direction.NE
    assert Direction.toward((3, 3), (3, 9)) is Direction.S
    assert Direction.toward((3, 3), (3, 3)) is None
    assert Direction.W.step((4, 4)) == (3, 4)


def test_actor_cannot_be_placed_in_a_wall(level: Level):
    with pytest.raises(InvariantViolation):
        level.add_actor(Actor(id=9, name="rat", kind="rat", pos=(0, 0)))


def test_two_actors_cannot_share_a_tile(level: Level):
    level.add_actor(Actor(id=9, name="rat", kind="rat", pos=(2, 2)))
    with pytest.raises(InvariantViolation):
        level.add_actor(Actor(id=10, name="rat", kind="rat", pos=(2, 2)))
    with pytest.raises(InvariantViolation):
        level.move_actor(level.player, (2, 2))


def test_second_player_rejected(level: Level):
    clone = Actor(id=0, name="you", kind="player", pos=(3, 3))
    with pytest.raises(InvariantViolation):
        level.add_actor(clone)


def test_item_is_placed_xor_held(level: Level):
    player = level.player
    item = level.add_item(Item(id=5, name="gold", kind="gold", item_kind=ItemKind.GOLD, pos=(2, 2), amount=3))
    level.check_invariants()

    level.give_item(item, player)
    assert item.pos is None and item.owner == player.id
    assert level.held_items(player) == [item]
    level.check_invariants()

    level.drop_item(item, (3, 3))
    assert item.owner is None and item.pos == (3, 3)
    assert player.inventory == []
    level.check_invariants()


def test_check_invariants_catches_inconsistent_items(level: Level):
    item = level.add_item(Item(id=5, name="gold", kind="gold", item_kind=ItemKind.GOLD, pos=(2, 2)))
    item.owner = level.player.id  # both placed and held
    with pytest.raises(InvariantViolation):
        level.check_invariants()


def test_check_invariants_requires_stairs():
    level = open_level()
    level.world.set_kind(level.stairs_down, TileKind.FLOOR)
    with pytest.raises(InvariantViolation):
        level.check_invariants()


def test_remove_item_detaches_from_owner(level: Level):
    player = level.player
    item = level.add_held_item(Item(id=5, name="potion", kind="healing_potion", item_kind=ItemKind.POTION), player)
    level.remove_item(item.id)
    assert player.inventory == []
    assert 5 not in level.items


def test_check_invariants_rejects_dead_actors(level: Level):
    level.add_actor(Actor(id=9, name="rat", kind="rat", pos=(2, 2)))
    level.check_invariants()
    level.actors[9].stats.hp = 0
    with pytest.raises(InvariantViolation):
        level.check_invariants()
