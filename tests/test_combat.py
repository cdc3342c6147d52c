"""Tests for movement, melee and death."""

import pytest

from delver.config import GameConfig
from delver.content import load_item_templates, make_item
from delver.errors import InvalidCommand
from delver.game import Game
from delver.rng import new_rng
from delver.state import Actor, Direction, ItemKind, Stats
from delver.systems.actions import perform
from delver.systems.commands import Command

from conftest import open_level


def test_attack_deals_attack_minus_defense(game, player, monster):
    player.stats.attack = 5
    orc = monster(5, (2, 1), hp=10, defense=2)
    perform(game, player, Command.attack(Direction.E))
    assert orc.hp == 7
    assert game.log.tail(1) == ["You attack the orc for 3 hit points."]


def test_attack_never_heals(game, player, monster):
    orc = monster(5, (2, 1), hp=10, defense=50)
    perform(game, player, Command.attack(Direction.E))
    assert orc.hp == 10
    assert "no effect" in game.log.tail(1)[0]


def test_killing_a_monster_drops_its_belongings_and_gold(game, player, monster):
    player.stats.attack = 50
    orc = monster(5, (2, 1), hp=10, xp=0)
    sword = _held_sword(game, orc)
    perform(game, player, Command.attack(Direction.E))

    assert 5 not in game.level.actors
    dropped = game.level.items_at((2, 1))
    assert sword in dropped
    gold = [i for i in dropped if i.item_kind is ItemKind.GOLD]
    assert len(gold) == 1 and gold[0].amount >= 1
    assert "The orc is dead!" in game.log.tail(3)
    game.level.check_invariants()


def _held_sword(game, actor):
    item = make_item(load_item_templates()["sword"], game.new_id())
    return game.level.add_held_item(item, actor)


def test_player_kill_grants_experience(game, player, template_monster):
    player.stats.attack = 100
    orc = template_monster("orc", (2, 1))
    perform(game, player, Command.attack(Direction.E))
    assert orc.id not in game.level.actors
    assert player.stats.xp == 35


def test_monster_kill_grants_no_experience(game, player, monster, template_monster):
    victim = template_monster("orc", (3, 3))
    killer = monster(50, (4, 3), attack=100)
    perform(game, killer, Command.attack(Direction.W))
    assert victim.id not in game.level.actors
    assert player.stats.xp == 0


def test_move_into_wall_is_rejected(game, player):
    with pytest.raises(InvalidCommand):
        perform(game, player, Command.move(Direction.N))
    assert player.pos == (1, 1)


def test_move_into_actor_is_rejected(game, player, monster):
    monster(5, (2, 1))
    with pytest.raises(InvalidCommand):
        perform(game, player, Command.move(Direction.E))


def test_attack_on_empty_tile_is_rejected(game, player):
    with pytest.raises(InvalidCommand):
        perform(game, player, Command.attack(Direction.SE))


def test_rejected_move_still_spends_the_turn(game, player):
    report = game.submit(Command.move(Direction.N))
    assert report.round == 1
    assert report.messages == ["That way is blocked."]
    assert player.pos == (1, 1)


def test_diagonal_move_sets_fov_dirty(game, player):
    perform(game, player, Command.move(Direction.SE))
    assert player.pos == (2, 2)
    assert game.fov_dirty


def test_no_variance_draws_nothing(game, player, monster):
    monster(5, (2, 1), hp=100)
    before = game.rng.getstate()
    perform(game, player, Command.attack(Direction.E))
    assert game.rng.getstate() == before


def test_variance_is_seeded():
    cfg = GameConfig(damage_variance=2)

    def fight(seed):
        level = open_level(cfg=cfg)
        game = Game(cfg, seed, level, new_rng(seed, "test"), next_id=100)
        orc = level.add_actor(Actor(id=5, name="orc", kind="orc", pos=(2, 1), stats=Stats(hp=500, max_hp=500)))
        for _ in range(10):
            perform(game, level.player, Command.attack(Direction.E))
        return orc.hp

    assert fight(3) == fight(3)
