"""Command resolution.

Every command goes through two steps. `validate` checks legality against the
current world and returns a Plan, raising InvalidCommand without touching
anything. `apply` carries the plan out. `perform` runs both.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from delver.errors import InvalidCommand
from delver.state.actors import Actor
from delver.state.entities import Item, ItemKind
from delver.state.world import Pos
from delver.systems import combat, effects
from delver.systems.commands import Command, CommandKind
from delver.systems.progression import recompute_modifiers

if TYPE_CHECKING:
    from delver.game import Game


@dataclass
class Plan:
    command: Command
    pos: Optional[Pos] = None
    target: Optional[Actor] = None
    item: Optional[Item] = None
    effect_target: Any = None


def perform(game: "Game", actor: Actor, command: Command) -> None:
    apply(game, actor, validate(game, actor, command))


def validate(game: "Game", actor: Actor, command: Command) -> Plan:
    check = _VALIDATORS.get(command.kind)
    if check is None:
        raise InvalidCommand(f"'{command.kind.value}' is not an action.")
    return check(game, actor, command)


def apply(game: "Game", actor: Actor, plan: Plan) -> None:
    _APPLIERS[plan.command.kind](game, actor, plan)


def _held(game: "Game", actor: Actor, item_id: Optional[int]) -> Item:
    if item_id is None or item_id not in actor.held_ids():
        raise InvalidCommand("You don't have that item.")
    return game.level.items[item_id]


def _inventory_full(game: "Game", actor: Actor) -> bool:
    return len(actor.inventory) >= game.cfg.inventory_limit


# --- move ---


def _check_move(game: "Game", actor: Actor, command: Command) -> Plan:
    if command.direction is None:
        raise InvalidCommand("Move where?")
    dest = command.direction.step(actor.pos)
    if not game.level.world.is_walkable(*dest):
        raise InvalidCommand("That way is blocked.")
    other = game.level.actor_at(dest)
    if other is not None:
        raise InvalidCommand(f"{combat.subject(other)} {'are' if other.is_player else 'is'} in the way.")
    return Plan(command, pos=dest)


def _apply_move(game: "Game", actor: Actor, plan: Plan) -> None:
    game.level.move_actor(actor, plan.pos)
    if actor.is_player:
        game.fov_dirty = True


# --- attack ---


def _check_attack(game: "Game", actor: Actor, command: Command) -> Plan:
    if command.direction is None:
        raise InvalidCommand("Attack where?")
    target = game.level.actor_at(command.direction.step(actor.pos))
    if target is None or target.id == actor.id:
        raise InvalidCommand("There is nothing there to attack.")
    return Plan(command, target=target)


def _apply_attack(game: "Game", actor: Actor, plan: Plan) -> None:
    combat.attack(game, actor, plan.target)


# --- items ---


def _check_use(game: "Game", actor: Actor, command: Command) -> Plan:
    item = _held(game, actor, command.item_id)
    if item.equipment is not None:
        return _check_equip(game, actor, command)
    if not item.item_kind.consumable or item.effect is None:
        raise InvalidCommand(f"The {item.name} cannot be used.")
    target = effects.resolve_target(game, actor, item.effect)
    return Plan(command, item=item, effect_target=target)


def _apply_use(game: "Game", actor: Actor, plan: Plan) -> None:
    item = plan.item
    if item.equipment is not None:
        _apply_equip(game, actor, plan)
        return
    game.level.remove_item(item.id)
    effects.apply_effect(game, actor, item.effect, plan.effect_target)


def _check_equip(game: "Game", actor: Actor, command: Command) -> Plan:
    item = _held(game, actor, command.item_id)
    if item.equipment is None:
        raise InvalidCommand(f"The {item.name} is not something you can equip.")
    return Plan(command, item=item)


def _apply_equip(game: "Game", actor: Actor, plan: Plan) -> None:
    level = game.level
    item = plan.item
    slot = actor.equipped(item.id)
    if slot is not None:
        actor.equipment[slot] = None
        if _inventory_full(game, actor):
            level.drop_item(item, actor.pos)
            game.message(f"{combat.subject(actor)} {combat.verb(actor, 'drop')} the {item.name}.")
        else:
            actor.inventory.append(item.id)
            game.message(f"{combat.subject(actor)} {combat.verb(actor, 'remove')} the {item.name}.")
    else:
        equip(game, actor, item)
    recompute_modifiers(level, actor)


def equip(game: "Game", actor: Actor, item: Item) -> None:
    """Move a carried item into its slot; whatever was there goes back."""
    level = game.level
    slot = item.equipment.slot
    current = actor.equipment.get(slot)
    actor.inventory.remove(item.id)
    actor.equipment[slot] = item.id
    game.message(f"{combat.subject(actor)} {combat.verb(actor, 'equip')} the {item.name}.")
    if current is not None:
        replaced = level.items[current]
        if _inventory_full(game, actor):
            level.drop_item(replaced, actor.pos)
        else:
            actor.inventory.append(current)
    recompute_modifiers(level, actor)


def _check_pick_up(game: "Game", actor: Actor, command: Command) -> Plan:
    here = game.level.items_at(actor.pos)
    if not here:
        raise InvalidCommand("There is nothing here to pick up.")
    item = here[0]
    if item.item_kind is not ItemKind.GOLD and _inventory_full(game, actor):
        raise InvalidCommand(f"Your inventory is full, cannot pick up the {item.name}.")
    return Plan(command, item=item)


def _apply_pick_up(game: "Game", actor: Actor, plan: Plan) -> None:
    level = game.level
    item = plan.item
    if item.item_kind is ItemKind.GOLD:
        level.remove_item(item.id)
        actor.gold += item.amount
        game.message(f"{combat.subject(actor)} {combat.verb(actor, 'pick')} up {item.amount} gold.")
        return
    level.give_item(item, actor)
    game.message(f"{combat.subject(actor)} {combat.verb(actor, 'pick')} up the {item.name}.")
    if item.equipment is not None and actor.equipment.get(item.equipment.slot) is None:
        equip(game, actor, item)


def _check_drop(game: "Game", actor: Actor, command: Command) -> Plan:
    return Plan(command, item=_held(game, actor, command.item_id))


def _apply_drop(game: "Game", actor: Actor, plan: Plan) -> None:
    item = plan.item
    game.level.drop_item(item, actor.pos)
    recompute_modifiers(game.level, actor)
    game.message(f"{combat.subject(actor)} {combat.verb(actor, 'drop')} the {item.name}.")


# --- descend / wait ---


def _check_descend(game: "Game", actor: Actor, command: Command) -> Plan:
    if not actor.is_player:
        raise InvalidCommand(f"The {actor.name} stays on its level.")
    if actor.pos != game.level.stairs_down:
        raise InvalidCommand("There are no stairs here.")
    return Plan(command)


def _apply_descend(game: "Game", actor: Actor, plan: Plan) -> None:
    game.descend()


def _check_wait(game: "Game", actor: Actor, command: Command) -> Plan:
    return Plan(command)


def _apply_wait(game: "Game", actor: Actor, plan: Plan) -> None:
    return None


_VALIDATORS: Dict[CommandKind, Callable[["Game", Actor, Command], Plan]] = {
    CommandKind.MOVE: _check_move,
    CommandKind.ATTACK: _check_attack,
    CommandKind.USE_ITEM: _check_use,
    CommandKind.EQUIP_ITEM: _check_equip,
    CommandKind.PICK_UP: _check_pick_up,
    CommandKind.DROP_ITEM: _check_drop,
    CommandKind.DESCEND: _check_descend,
    CommandKind.WAIT: _check_wait,
}

_APPLIERS: Dict[CommandKind, Callable[["Game", Actor, Plan], None]] = {
    CommandKind.MOVE: _apply_move,
    CommandKind.ATTACK: _apply_attack,
    CommandKind.USE_ITEM: _apply_use,
    CommandKind.EQUIP_ITEM: _apply_equip,
    CommandKind.PICK_UP: _apply_pick_up,
    CommandKind.DROP_ITEM: _apply_drop,
    CommandKind.DESCEND: _apply_descend,
    CommandKind.WAIT: _apply_wait,
}
