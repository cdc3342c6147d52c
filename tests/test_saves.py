"""Tests for the save format."""

import json
import zlib

import pytest

from delver.errors import SaveFormatError, UnsupportedSaveVersion
from delver.game import Game
from delver.state import Direction, EffectKind, Equipment
from delver.state.saves import MAGIC, load, load_game, save
from delver.systems.commands import Command
from delver.systems.effects import add_status
from delver.systems.fov import explored_memory
from delver.systems.progression import Progression, recompute_modifiers

_WALK = [Command.move(d) for d in (Direction.E, Direction.E, Direction.S, Direction.SE, Direction.W)]


def _blob(doc) -> bytes:
    return MAGIC + zlib.compress(json.dumps(doc).encode("utf-8"))


def test_round_trip_restores_the_same_level():
    game = Game.new(seed=5)
    for cmd in _WALK:
        game.submit(cmd)
    add_status(game.player, EffectKind.STRENGTH, duration=4, magnitude=2)
    recompute_modifiers(game.level, game.player)

    data = save(game.level, Progression.of(game.player), explored_memory(game.level))
    level, progression, memory = load(data)

    assert level == game.level
    assert progression == Progression.of(game.player)
    assert memory == explored_memory(game.level)
    assert level.player.statuses[EffectKind.STRENGTH].remaining == 4


def test_context_round_trips():
    game = Game.new(seed=5)
    _, _, _, context = load_game(game.save())
    assert context["seed"] == 5
    assert context["next_id"] == game.next_id
    assert context["rng_state"] == game.rng.export_state()


def test_loaded_game_plays_on_identically():
    game = Game.new(seed=9)
    game.submit(Command.wait())
    clone = Game.from_save(game.save())
    assert clone.snapshot().tiles == game.snapshot().tiles

    for cmd in _WALK + [Command.wait()] * 5:
        a = game.submit(cmd)
        b = clone.submit(cmd)
        assert a == b
    assert clone.snapshot() == game.snapshot()


def test_bad_magic():
    with pytest.raises(SaveFormatError):
        load(b"NOPE" + zlib.compress(b"{}"))
    with pytest.raises(SaveFormatError):
        load(b"")


def test_truncated_save():
    data = Game.new(seed=2).save()
    with pytest.raises(SaveFormatError):
        load(data[: len(data) // 2])


def test_garbage_payload():
    with pytest.raises(SaveFormatError):
        load(MAGIC + zlib.compress(b"not json at all"))
    with pytest.raises(SaveFormatError):
        load(_blob([1, 2, 3]))


def test_unknown_version():
    with pytest.raises(UnsupportedSaveVersion) as info:
        load(_blob({"version": 99}))
    assert info.value.version == 99


def test_missing_fields():
    with pytest.raises(SaveFormatError):
        load(_blob({"version": 1, "depth": 1}))


def test_inconsistent_world_is_rejected():
    data = Game.new(seed=4).save()
    doc = json.loads(zlib.decompress(data[len(MAGIC):]))
    player = next(a for a in doc["actors"] if a["id"] == 0)
    x, y = player["pos"]
    doc["kinds"][y] = doc["kinds"][y][:x] + "#" + doc["kinds"][y][x + 1:]
    with pytest.raises(SaveFormatError):
        load(_blob(doc))


def test_two_players_rejected():
    data = Game.new(seed=4).save()
    doc = json.loads(zlib.decompress(data[len(MAGIC):]))
    clone = dict(next(a for a in doc["actors"] if a["id"] == 0))
    clone["id"] = 999
    clone["inventory"] = []
    clone["equipment"] = {"weapon": None, "armor": None}
    clone["pos"] = [clone["pos"][0] + 1, clone["pos"][1]]
    doc["actors"].append(clone)
    with pytest.raises(SaveFormatError):
        load(_blob(doc))


def test_save_to_writes_atomically(tmp_path):
    game = Game.new(seed=6)
    path = tmp_path / "slot.sav"
    path.write_bytes(b"old")
    game.save_to(path)
    assert Game.load_from(path).snapshot() == game.snapshot()
    assert [p.name for p in tmp_path.iterdir()] == ["slot.sav"]


def _doc(data: bytes):
    return json.loads(zlib.decompress(data[len(MAGIC):]))


@pytest.mark.parametrize("hp", [9999, -5, 0])
def test_out_of_range_hp_is_rejected_not_clamped(hp):
    doc = _doc(Game.new(seed=4).save())
    player = next(a for a in doc["actors"] if a["id"] == 0)
    player["stats"]["hp"] = hp
    with pytest.raises(SaveFormatError):
        load(_blob(doc))


def test_hp_above_base_max_is_fine_with_a_bonus_item():
    game = Game.new(seed=4)
    player = game.player
    item = next(i for i in game.level.items.values() if i.owner == player.id)
    item.equipment = Equipment(slot=item.equipment.slot, attack_bonus=2, max_hp_bonus=10)
    recompute_modifiers(game.level, player)
    player.stats.hp = player.max_hp

    level, _, _ = load(game.save())
    assert level.player.hp == player.stats.max_hp + 10


def test_progression_must_match_the_player():
    doc = _doc(Game.new(seed=4).save())
    doc["progression"] = {"xp": 5000, "level": 9}
    with pytest.raises(SaveFormatError):
        load(_blob(doc))
    with pytest.raises(SaveFormatError):
        Game.from_save(_blob(doc))
