"""Read-only views of a game for front ends.

Nothing here references live model objects; a Snapshot stays valid after the
game moves on.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from delver.state.world import Pos, TileKind
from delver.systems.progression import xp_to_next

if TYPE_CHECKING:
    from delver.game import Game


@dataclass(frozen=True)
class TileView:
    kind: TileKind
    explored: bool
    visible: bool


@dataclass(frozen=True)
class ActorView:
    id: int
    name: str
    kind: str
    pos: Pos
    hp: int
    max_hp: int
    statuses: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ItemView:
    id: int
    name: str
    kind: str
    glyph: str
    pos: Optional[Pos] = None
    equipped: Optional[str] = None
    amount: int = 0


@dataclass(frozen=True)
class PlayerView:
    id: int
    name: str
    pos: Pos
    hp: int
    max_hp: int
    attack: int
    defense: int
    base_attack: int
    base_defense: int
    level: int
    xp: int
    xp_to_next: int
    gold: int
    inventory: Tuple[ItemView, ...]
    equipment: Dict[str, Optional[ItemView]]
    statuses: Dict[str, int]
    alive: bool = True


@dataclass(frozen=True)
class Snapshot:
    depth: int
    round: int
    width: int
    height: int
    tiles: Tuple[Tuple[TileView, ...], ...]
    actors: Tuple[ActorView, ...]
    items: Tuple[ItemView, ...]
    player: PlayerView
    messages: Tuple[str, ...]
    over: bool

    def tile(self, pos: Pos) -> TileView:
        x, y = pos
        return self.tiles[y][x]

    def actor_at(self, pos: Pos) -> Optional[ActorView]:
        for actor in self.actors:
            if actor.pos == pos:
                return actor
        return None


def take(game: "Game") -> Snapshot:
    level = game.level
    world = level.world
    tiles = tuple(
        tuple(TileView(t.kind, t.explored, t.visible) for t in row) for row in world.tiles
    )

    actors: List[ActorView] = []
    for _, actor in sorted(level.actors.items()):
        if not world.tile(actor.pos).visible:
            continue
        actors.append(ActorView(
            id=actor.id,
            name=actor.name,
            kind=actor.kind,
            pos=actor.pos,
            hp=actor.hp,
            max_hp=actor.max_hp,
            statuses=tuple(sorted(k.value for k in actor.statuses)),
        ))

    items = tuple(
        ItemView(item.id, item.name, item.kind, item.glyph, pos=item.pos, amount=item.amount)
        for _, item in sorted(level.items.items())
        if item.pos is not None and world.tile(item.pos).visible
    )

    player = game.player
    inventory = tuple(
        ItemView(i.id, i.name, i.kind, i.glyph, amount=i.amount)
        for i in (level.items[item_id] for item_id in player.inventory)
    ) if not game.over else ()
    equipment: Dict[str, Optional[ItemView]] = {}
    for slot, item_id in player.equipment.items():
        if item_id is None or game.over:
            equipment[slot.value] = None
            continue
        item = level.items[item_id]
        equipment[slot.value] = ItemView(item.id, item.name, item.kind, item.glyph, equipped=slot.value)

    return Snapshot(
        depth=level.depth,
        round=game.round,
        width=world.width,
        height=world.height,
        tiles=tiles,
        actors=tuple(actors),
        items=items,
        player=PlayerView(
            id=player.id,
            name=player.name,
            pos=player.pos,
            hp=player.hp,
            max_hp=player.max_hp,
            attack=player.attack,
            defense=player.defense,
            base_attack=player.stats.attack,
            base_defense=player.stats.defense,
            level=player.stats.level,
            xp=player.stats.xp,
            xp_to_next=xp_to_next(player.stats.level, game.cfg),
            gold=player.gold,
            inventory=inventory,
            equipment=equipment,
            statuses={k.value: s.remaining for k, s in player.statuses.items()},
            alive=not game.over,
        ),
        messages=tuple(game.last_messages),
        over=game.over,
    )
