"""Tests for experience, level-ups and timed statuses."""

from delver.config import GameConfig
from delver.state import Direction, EffectKind, StatusEffect
from delver.systems.commands import Command
from delver.systems.effects import add_status, tick_statuses
from delver.systems.progression import Progression, grant_xp, recompute_modifiers, xp_to_next


def test_xp_curve_is_increasing():
    cfg = GameConfig()
    assert xp_to_next(1, cfg) == 350
    assert xp_to_next(2, cfg) == 500
    assert all(xp_to_next(n, cfg) < xp_to_next(n + 1, cfg) for n in range(1, 20))


def test_grant_xp_below_threshold(game, player):
    assert grant_xp(game, player, 100) == []
    assert player.stats.xp == 100
    assert player.stats.level == 1


def test_level_up_raises_stats_and_heals(game, player):
    player.stats.hp = 10
    reached = grant_xp(game, player, 360)
    assert reached == [2]
    assert player.stats.level == 2
    assert player.stats.xp == 10
    assert player.stats.max_hp == 120
    assert player.hp == 120
    assert player.stats.attack == 5
    assert player.stats.defense == 2  # even level
    assert "You reached level 2!" in game.log.tail(1)[0]


def test_several_levels_at_once(game, player):
    reached = grant_xp(game, player, 350 + 500 + 650)
    assert reached == [2, 3, 4]
    assert player.stats.xp == 0
    assert player.stats.defense == 1 + 2
    assert game.leveled == [2, 3, 4]


def test_progression_snapshot(player):
    player.stats.xp = 42
    player.stats.level = 3
    prog = Progression.of(player)
    assert prog == Progression(xp=42, level=3)
    player.stats.xp = 0
    prog.apply_to(player)
    assert player.stats.xp == 42


def test_level_up_mid_round_shows_in_report(game, player, template_monster):
    player.stats.attack = 100
    player.stats.xp = 340
    template_monster("orc", (2, 1))
    report = game.submit(Command.attack(Direction.E))
    assert report.leveled_up == [2]
    assert game.snapshot().player.level == 2


def test_burn_ticks_and_expires(game, player, monster):
    orc = monster(5, (5, 5), hp=20)
    add_status(orc, EffectKind.BURN, duration=2, magnitude=4, source_id=player.id)
    tick_statuses(game)
    assert orc.hp == 16
    assert orc.statuses[EffectKind.BURN].remaining == 1
    tick_statuses(game)
    assert orc.hp == 12
    assert EffectKind.BURN not in orc.statuses
    tick_statuses(game)
    assert orc.hp == 12


def test_burn_kill_credits_the_caster(game, player, template_monster):
    orc = template_monster("orc", (5, 5))
    orc.stats.hp = 3
    add_status(orc, EffectKind.BURN, duration=3, magnitude=4, source_id=player.id)
    died = tick_statuses(game)
    assert died == [orc.id]
    assert player.stats.xp == 35


def test_strength_wears_off(game, player):
    base = player.attack
    player.statuses[EffectKind.STRENGTH] = StatusEffect(EffectKind.STRENGTH, remaining=1, magnitude=3)
    recompute_modifiers(game.level, player)
    assert player.attack == base + 3
    tick_statuses(game)
    assert player.attack == base
    assert "You feel weaker." in game.log.tail(1)


def test_confusion_expires_with_message(game, monster):
    orc = monster(5, (5, 5))
    add_status(orc, EffectKind.CONFUSE, duration=1)
    tick_statuses(game)
    assert not orc.has_status(EffectKind.CONFUSE)
    assert "The orc is no longer confused." in game.log.tail(1)
