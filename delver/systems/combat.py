from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from delver.content import load_monster_templates, make_gold
from delver.logging import get_logger
from delver.state.actors import PLAYER_ID, Actor
from delver.systems.progression import grant_xp

if TYPE_CHECKING:
    from delver.game import Game

logger = get_logger(__name__)


def subject(actor: Actor) -> str:
    return "You" if actor.is_player else f"The {actor.name}"


def obj(actor: Actor) -> str:
    return "you" if actor.is_player else f"the {actor.name}"


def verb(actor: Actor, word: str) -> str:
    return word if actor.is_player else word + "s"


def attack(game: "Game", attacker: Actor, defender: Actor) -> int:
    """Melee hit; returns the damage dealt."""
    variance = game.cfg.damage_variance
    roll = game.rng.randint(-variance, variance) if variance > 0 else 0
    dmg = max(0, attacker.attack - defender.defense + roll)
    if dmg > 0:
        game.message(
            f"{subject(attacker)} {verb(attacker, 'attack')} {obj(defender)} for {dmg} hit points."
        )
    else:
        game.message(
            f"{subject(attacker)} {verb(attacker, 'attack')} {obj(defender)} but it has no effect!"
        )
    damage(game, defender, dmg, attacker.id)
    return dmg


def damage(game: "Game", target: Actor, amount: int, source_id: Optional[int]) -> bool:
    """Lower hp (never below 0); returns True when the target died."""
    if amount <= 0 or not target.alive:
        return False
    target.stats.hp = max(0, target.stats.hp - amount)
    if target.stats.hp == 0:
        kill(game, target, source_id)
        return True
    return False


def kill(game: "Game", actor: Actor, killer_id: Optional[int]) -> None:
    """Remove a dead actor, leaving its belongings where it fell."""
    level = game.level
    pos = actor.pos
    for item in level.held_items(actor):
        level.drop_item(item, pos)

    if actor.is_player:
        level.remove_actor(actor.id)
        game.fallen = actor
        game.over = True
        game.message("You died!")
        logger.info("actor_killed", actor=actor.name, id=actor.id, killer=killer_id, player=True)
        return

    tmpl = load_monster_templates().get(actor.kind)
    lo, hi = tmpl.gold if tmpl is not None else (1, 1)
    amount = max(1, game.rng.randint(lo, hi) if hi > lo else lo) + actor.gold
    level.remove_actor(actor.id)
    level.add_item(make_gold(game.new_id(), pos, amount))
    game.message(f"The {actor.name} is dead!")
    logger.info("actor_killed", actor=actor.name, id=actor.id, killer=killer_id, gold=amount)

    player = level.player
    if killer_id == PLAYER_ID and player is not None and actor.stats.xp > 0:
        game.message(f"You gain {actor.stats.xp} experience points.")
        grant_xp(game, player, actor.stats.xp)
