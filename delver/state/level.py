from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from delver.errors import InvariantViolation
from delver.state.actors import PLAYER_ID, Actor, Faction
from delver.state.entities import Item
from delver.state.world import Pos, TileKind, World


@dataclass
class Level:
    """World model for one dungeon level.

    Actors and items live in flat id-keyed dicts. An item is either placed
    (item.pos) or held (item.owner + listed by that actor); held items stay
    in `items` so a single lookup finds everything on the level.
    """
    world: World
    depth: int
    entry: Pos
    stairs_down: Pos
    actors: Dict[int, Actor] = field(default_factory=dict)
    items: Dict[int, Item] = field(default_factory=dict)

    # --- actors ---

    @property
    def player(self) -> Optional[Actor]:
        return self.actors.get(PLAYER_ID)

    def monsters(self) -> List[Actor]:
        return [a for _, a in sorted(self.actors.items()) if a.faction is Faction.MONSTER]

    def actor_at(self, pos: Pos) -> Optional[Actor]:
        for actor in self.actors.values():
            if actor.pos == pos:
                return actor
        return None

    def is_blocked(self, pos: Pos) -> bool:
        """True for walls, out-of-bounds tiles and tiles holding an actor."""
        if not self.world.in_bounds(*pos):
            return True
        if not self.world.is_walkable(*pos):
            return True
        return self.actor_at(pos) is not None

    def add_actor(self, actor: Actor) -> Actor:
        if actor.id in self.actors:
            raise InvariantViolation(f"duplicate actor id {actor.id}")
        if actor.is_player and self.player is not None:
            raise InvariantViolation("level already has a player")
        self._check_standable(actor.pos)
        if self.actor_at(actor.pos) is not None:
            raise InvariantViolation(f"{actor.pos} already occupied")
        self.actors[actor.id] = actor
        return actor

    def remove_actor(self, actor_id: int) -> Actor:
        return self.actors.pop(actor_id)

    def move_actor(self, actor: Actor, pos: Pos) -> None:
        self._check_standable(pos)
        other = self.actor_at(pos)
        if other is not None and other.id != actor.id:
            raise InvariantViolation(f"{actor.name} cannot move onto {other.name}")
        actor.pos = pos

    def _check_standable(self, pos: Pos) -> None:
        tile = self.world.tile(pos)  # raises OutOfBoundsAccess
        if not tile.walkable:
            raise InvariantViolation(f"{pos} is a {tile.kind.name.lower()} tile")

    # --- items ---

    def items_at(self, pos: Pos) -> List[Item]:
        return [item for _, item in sorted(self.items.items()) if item.pos == pos]

    def placed_items(self) -> Iterator[Item]:
        return (item for item in self.items.values() if item.pos is not None)

    def held_items(self, actor: Actor) -> List[Item]:
        return [self.items[item_id] for item_id in actor.held_ids()]

    def add_item(self, item: Item) -> Item:
        """Register an item that lies on the grid."""
        if item.id in self.items:
            raise InvariantViolation(f"duplicate item id {item.id}")
        if item.owner is not None or item.pos is None:
            raise InvariantViolation(f"new item {item.id} must be placed, not held")
        self._check_standable(item.pos)
        self.items[item.id] = item
        return item

    def add_held_item(self, item: Item, actor: Actor) -> Item:
        """Register an item straight into an actor's inventory."""
        if item.id in self.items:
            raise InvariantViolation(f"duplicate item id {item.id}")
        item.pos = None
        item.owner = actor.id
        actor.inventory.append(item.id)
        self.items[item.id] = item
        return item

    def remove_item(self, item_id: int) -> Item:
        """Destroy an item wherever it is (e.g. a consumed potion)."""
        item = self.items.pop(item_id)
        if item.owner is not None:
            owner = self.actors.get(item.owner)
            if owner is not None:
                self._detach(owner, item_id)
        item.owner = None
        item.pos = None
        return item

    def give_item(self, item: Item, actor: Actor) -> None:
        """Move a placed item into an actor's inventory."""
        if item.owner is not None:
            raise InvariantViolation(f"item {item.id} already held by {item.owner}")
        item.pos = None
        item.owner = actor.id
        actor.inventory.append(item.id)

    def drop_item(self, item: Item, pos: Pos) -> None:
        """Take an item from its holder (if any) and place it at pos."""
        self._check_standable(pos)
        if item.owner is not None:
            owner = self.actors.get(item.owner)
            if owner is not None:
                self._detach(owner, item.id)
        item.owner = None
        item.pos = pos

    @staticmethod
    def _detach(actor: Actor, item_id: int) -> None:
        if item_id in actor.inventory:
            actor.inventory.remove(item_id)
        for slot, held in actor.equipment.items():
            if held == item_id:
                actor.equipment[slot] = None

    # --- checks ---

    def check_invariants(self) -> None:
        """Raise InvariantViolation if the model is inconsistent."""
        seen: Dict[Tuple[int, int], int] = {}
        players = 0
        for aid, actor in self.actors.items():
            if aid != actor.id:
                raise InvariantViolation(f"actor keyed {aid} has id {actor.id}")
            self._check_standable(actor.pos)
            if actor.pos in seen:
                raise InvariantViolation(
                    f"actors {seen[actor.pos]} and {aid} share {actor.pos}"
                )
            seen[actor.pos] = aid
            if not 0 <= actor.stats.hp <= actor.max_hp:
                raise InvariantViolation(f"actor {aid} hp {actor.stats.hp}/{actor.max_hp}")
            if not actor.alive:
                raise InvariantViolation(f"dead actor {aid} is still on the level")
            if actor.is_player:
                players += 1
            for item_id in actor.held_ids():
                item = self.items.get(item_id)
                if item is None or item.owner != aid:
                    raise InvariantViolation(f"actor {aid} lists item {item_id} it does not own")
            if len(set(actor.held_ids())) != len(actor.held_ids()):
                raise InvariantViolation(f"actor {aid} lists an item twice")
        if players != 1:
            raise InvariantViolation(f"expected exactly one player, found {players}")
        for iid, item in self.items.items():
            if iid != item.id:
                raise InvariantViolation(f"item keyed {iid} has id {item.id}")
            if (item.pos is None) == (item.owner is None):
                raise InvariantViolation(f"item {iid} must be placed xor held")
            if item.pos is not None:
                self._check_standable(item.pos)
            else:
                owner = self.actors.get(item.owner)
                if owner is None or iid not in owner.held_ids():
                    raise InvariantViolation(f"item {iid} owner {item.owner} does not hold it")
        if self.world.kind_at(self.stairs_down) is not TileKind.STAIRS_DOWN:
            raise InvariantViolation(f"no stairs at {self.stairs_down}")
