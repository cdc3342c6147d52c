"""Consumable effects and per-round status ticking.

Each EffectKind registers an EffectDef with two halves: `target` picks what
the effect acts on and raises InvalidCommand when it would do nothing (the
item is kept), `apply` changes the world and cannot fail.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from delver.errors import InvalidCommand
from delver.state.actors import Actor, StatusEffect
from delver.state.entities import Effect, EffectKind
from delver.state.world import distance2
from delver.systems import combat
from delver.systems.fov import compute_visible
from delver.systems.progression import recompute_modifiers

if TYPE_CHECKING:
    from delver.game import Game


@dataclass
class EffectDef:
    kind: EffectKind
    target: Callable[["Game", Actor, Effect], Any]
    apply: Callable[["Game", Actor, Effect, Any], None]


effects: Dict[EffectKind, EffectDef] = {}


def register_effect(effect: EffectDef) -> None:
    effects[effect.kind] = effect


def get_effect(kind: EffectKind) -> EffectDef:
    try:
        return effects[kind]
    except KeyError:
        raise InvalidCommand(f"Nothing happens ({kind.value}).") from None


def resolve_target(game: "Game", user: Actor, effect: Effect) -> Any:
    return get_effect(effect.kind).target(game, user, effect)


def apply_effect(game: "Game", user: Actor, effect: Effect, target: Any) -> None:
    get_effect(effect.kind).apply(game, user, effect, target)


# --- targeting helpers ---


def closest_visible_monster(game: "Game", user: Actor, max_range: int) -> Optional[Actor]:
    """Nearest other-faction actor in sight of `user`; ties go to the lower id."""
    level = game.level
    seen = compute_visible(level, user.pos, max_range)
    best: Optional[Actor] = None
    best_key = None
    for actor in level.actors.values():
        if actor.faction is user.faction or actor.pos not in seen:
            continue
        d2 = distance2(user.pos, actor.pos)
        if d2 > max_range * max_range:
            continue
        key = (d2, actor.id)
        if best_key is None or key < best_key:
            best, best_key = actor, key
    return best


def _require_monster(game: "Game", user: Actor, effect: Effect) -> Actor:
    target = closest_visible_monster(game, user, effect.range)
    if target is None:
        raise InvalidCommand("No enemy is close enough to strike.")
    return target


def add_status(actor: Actor, kind: EffectKind, duration: int, magnitude: int = 0,
               source_id: Optional[int] = None) -> StatusEffect:
    """Start or refresh a status; a reapplied status replaces the old one."""
    status = StatusEffect(kind=kind, remaining=duration, magnitude=magnitude, source_id=source_id)
    actor.statuses[kind] = status
    return status


# --- heal ---


def _heal_target(game: "Game", user: Actor, effect: Effect) -> Actor:
    if user.hp >= user.max_hp:
        raise InvalidCommand("You are already at full health.")
    return user


def _heal_apply(game: "Game", user: Actor, effect: Effect, target: Actor) -> None:
    before = target.stats.hp
    target.stats.hp = min(target.max_hp, target.stats.hp + effect.amount)
    game.message(f"{combat.subject(target)} {combat.verb(target, 'heal')} {target.stats.hp - before} hit points.")


register_effect(EffectDef(EffectKind.HEAL, _heal_target, _heal_apply))


# --- lightning ---


def _lightning_apply(game: "Game", user: Actor, effect: Effect, target: Actor) -> None:
    game.message(
        f"A lightning bolt strikes {combat.obj(target)} with a loud thunder! "
        f"The damage is {effect.amount} hit points."
    )
    combat.damage(game, target, effect.amount, user.id)


register_effect(EffectDef(EffectKind.LIGHTNING, _require_monster, _lightning_apply))


# --- confusion ---


def _confuse_apply(game: "Game", user: Actor, effect: Effect, target: Actor) -> None:
    add_status(target, EffectKind.CONFUSE, effect.duration, source_id=user.id)
    game.message(f"The eyes of {combat.obj(target)} look vacant, as it starts to stumble around!")


register_effect(EffectDef(EffectKind.CONFUSE, _require_monster, _confuse_apply))


# --- fireball ---


def _fireball_apply(game: "Game", user: Actor, effect: Effect, target: Actor) -> None:
    center = target.pos
    r2 = effect.radius * effect.radius
    game.message(f"The fireball explodes, burning everything within {effect.radius} tiles!")
    caught = [a for _, a in sorted(game.level.actors.items()) if distance2(center, a.pos) <= r2]
    for actor in caught:
        if not actor.alive or actor.id not in game.level.actors:
            continue
        game.message(f"{combat.subject(actor)} {combat.verb(actor, 'get')} burned for {effect.amount} hit points.")
        combat.damage(game, actor, effect.amount, user.id)


register_effect(EffectDef(EffectKind.FIREBALL, _require_monster, _fireball_apply))


# --- strength ---


def _self_target(game: "Game", user: Actor, effect: Effect) -> Actor:
    return user


def _strength_apply(game: "Game", user: Actor, effect: Effect, target: Actor) -> None:
    add_status(target, EffectKind.STRENGTH, effect.duration, magnitude=effect.amount, source_id=user.id)
    recompute_modifiers(game.level, target)
    game.message(f"{combat.subject(target)} {combat.verb(target, 'feel')} stronger.")


register_effect(EffectDef(EffectKind.STRENGTH, _self_target, _strength_apply))


# --- burn ---


def _burn_apply(game: "Game", user: Actor, effect: Effect, target: Actor) -> None:
    add_status(target, EffectKind.BURN, effect.duration, magnitude=effect.amount, source_id=user.id)
    game.message(f"{combat.subject(target)} {combat.verb(target, 'catch')} fire!")


register_effect(EffectDef(EffectKind.BURN, _require_monster, _burn_apply))


# --- end of round ---

_EXPIRY_TEXT = {
    EffectKind.CONFUSE: "{subject} {be} no longer confused.",
    EffectKind.STRENGTH: "{subject} {feel} weaker.",
    EffectKind.BURN: "The flames on {obj} die out.",
}


def tick_statuses(game: "Game") -> List[int]:
    """Burn, count down and expire statuses; returns ids of actors that died."""
    level = game.level
    died: List[int] = []
    for actor in [a for _, a in sorted(level.actors.items())]:
        if actor.id not in level.actors:
            continue
        burn = actor.statuses.get(EffectKind.BURN)
        if burn is not None:
            game.message(f"{combat.subject(actor)} {combat.verb(actor, 'burn')} for {burn.magnitude} hit points.")
            if combat.damage(game, actor, burn.magnitude, burn.source_id):
                died.append(actor.id)
                continue
        expired = []
        for kind, status in actor.statuses.items():
            status.remaining -= 1
            if status.remaining <= 0:
                expired.append(kind)
        for kind in expired:
            del actor.statuses[kind]
            text = _EXPIRY_TEXT.get(kind)
            if text:
                game.message(text.format(
                    subject=combat.subject(actor),
                    obj=combat.obj(actor),
                    be="are" if actor.is_player else "is",
                    feel=combat.verb(actor, "feel"),
                ))
        if expired:
            recompute_modifiers(level, actor)
    return died
