from __future__ import annotations

from typing import List, Optional, Tuple

from delver.config import GameConfig, from_depth_table
from delver.content import (
    load_item_templates,
    load_monster_templates,
    make_item,
    spawn_monster,
    weighted_choice,
)
from delver.errors import GenerationFailure
from delver.logging import get_logger
from delver.rng import RNG, new_rng
from delver.state.actors import PLAYER_ID, Actor, Faction, Stats
from delver.state.level import Level
from delver.state.world import Pos, TileKind, World

logger = get_logger(__name__)

Room = Tuple[int, int, int, int]  # x, y, w, h; walls on the rim, floor inside


def room_center(room: Room) -> Pos:
    x, y, w, h = room
    return (x + w // 2, y + h // 2)


def rooms_intersect(a: Room, b: Room) -> bool:
    # inclusive so two rooms never share a wall
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax <= bx + bw and ax + aw >= bx and ay <= by + bh and ay + ah >= by


def room_interior(room: Room) -> List[Pos]:
    x, y, w, h = room
    return [(xx, yy) for yy in range(y + 1, y + h) for xx in range(x + 1, x + w)]


def carve_room(world: World, room: Room) -> None:
    for pos in room_interior(room):
        world.set_kind(pos, TileKind.FLOOR)


def carve_h_tunnel(world: World, x1: int, x2: int, y: int) -> None:
    for xx in range(min(x1, x2), max(x1, x2) + 1):
        world.set_kind((xx, y), TileKind.FLOOR)


def carve_v_tunnel(world: World, y1: int, y2: int, x: int) -> None:
    for yy in range(min(y1, y2), max(y1, y2) + 1):
        world.set_kind((x, yy), TileKind.FLOOR)


def _room_around(cfg: GameConfig, rng: RNG, entry: Pos) -> Room:
    """A room whose center is exactly `entry`, shrunk until it fits."""
    ex, ey = entry
    w = rng.randint(cfg.room_min, cfg.room_max)
    h = rng.randint(cfg.room_min, cfg.room_max)
    while w > cfg.room_min and not (ex - w // 2 >= 0 and ex - w // 2 + w <= cfg.map_width - 1):
        w -= 1
    while h > cfg.room_min and not (ey - h // 2 >= 0 and ey - h // 2 + h <= cfg.map_height - 1):
        h -= 1
    room = (ex - w // 2, ey - h // 2, w, h)
    x, y, w, h = room
    if x < 0 or y < 0 or x + w > cfg.map_width - 1 or y + h > cfg.map_height - 1:
        raise GenerationFailure(f"cannot fit a spawn room around {entry}")
    return room


def _random_room(cfg: GameConfig, rng: RNG) -> Room:
    w = rng.randint(cfg.room_min, cfg.room_max)
    h = rng.randint(cfg.room_min, cfg.room_max)
    x = rng.randint(0, cfg.map_width - w - 1)
    y = rng.randint(0, cfg.map_height - h - 1)
    return (x, y, w, h)


def layout(cfg: GameConfig, seed: int, depth: int, entry: Optional[Pos]) -> Tuple[World, List[Room]]:
    """Carve rooms and corridors. The first room is the spawn room."""
    rng = new_rng(seed, depth, "layout")
    world = World(cfg.map_width, cfg.map_height)

    rooms: List[Room] = []
    if entry is not None:
        first = _room_around(cfg, rng, entry)
        carve_room(world, first)
        rooms.append(first)

    attempts = 0
    while len(rooms) < cfg.max_rooms and attempts < cfg.room_attempts:
        attempts += 1
        new_room = _random_room(cfg, rng)
        if any(rooms_intersect(new_room, other) for other in rooms):
            continue

        carve_room(world, new_room)
        if rooms:
            # connect to previous room center
            prev_cx, prev_cy = room_center(rooms[-1])
            cx, cy = room_center(new_room)
            if rng.random() < 0.5:
                carve_h_tunnel(world, prev_cx, cx, prev_cy)
                carve_v_tunnel(world, prev_cy, cy, cx)
            else:
                carve_v_tunnel(world, prev_cy, cy, prev_cx)
                carve_h_tunnel(world, prev_cx, cx, cy)
        rooms.append(new_room)

    if len(rooms) < cfg.min_rooms:
        raise GenerationFailure(
            f"placed {len(rooms)} rooms at depth {depth} (need {cfg.min_rooms})"
        )
    return world, rooms


def stairs_position(cfg: GameConfig, seed: int, depth: int) -> Pos:
    """Where stairs-down lies on `depth`, replaying shallower layouts."""
    entry: Optional[Pos] = None
    for d in range(1, depth + 1):
        _, rooms = layout(cfg, seed, d, entry)
        entry = room_center(rooms[-1])
    assert entry is not None
    return entry


def new_player(cfg: GameConfig, pos: Pos) -> Actor:
    return Actor(
        id=PLAYER_ID,
        name="you",
        kind="player",
        pos=pos,
        faction=Faction.PLAYER,
        stats=Stats(
            hp=cfg.player_hp,
            max_hp=cfg.player_hp,
            attack=cfg.player_attack,
            defense=cfg.player_defense,
            xp=0,
            level=1,
        ),
    )


def generate(seed: int, depth: int, cfg: Optional[GameConfig] = None, first_id: int = 1) -> Level:
    """Build a populated level; identical arguments give identical levels."""
    if depth < 1:
        raise ValueError(f"depth must be >= 1, got {depth}")
    cfg = cfg or GameConfig()

    entry = stairs_position(cfg, seed, depth - 1) if depth > 1 else None
    world, rooms = layout(cfg, seed, depth, entry)
    spawn = room_center(rooms[0])
    stairs = room_center(rooms[-1])
    world.set_kind(stairs, TileKind.STAIRS_DOWN)
    if depth > 1:
        world.set_kind(spawn, TileKind.STAIRS_UP)

    level = Level(world=world, depth=depth, entry=spawn, stairs_down=stairs)
    level.add_actor(new_player(cfg, spawn))
    next_id = _populate(level, cfg, seed, rooms[1:], first_id)

    logger.debug(
        "level_generated",
        seed=seed,
        depth=depth,
        rooms=len(rooms),
        monsters=len(level.actors) - 1,
        items=len(level.items),
        next_id=next_id,
    )
    return level


def _populate(level: Level, cfg: GameConfig, seed: int, rooms: List[Room], first_id: int) -> int:
    """Scatter monsters and items in `rooms`; returns the next free id."""
    rng = new_rng(seed, level.depth, "populate")
    monsters = list(load_monster_templates().values())
    items = list(load_item_templates().values())
    max_monsters = from_depth_table(cfg.max_monsters_table, level.depth)
    max_items = from_depth_table(cfg.max_items_table, level.depth)
    reserved = {level.entry, level.stairs_down}
    next_id = first_id

    for room in rooms:
        x, y, w, h = room
        for _ in range(rng.randint(0, max_monsters)):
            pos = (rng.randint(x + 1, x + w - 1), rng.randint(y + 1, y + h - 1))
            tmpl = weighted_choice(rng, monsters, level.depth)
            if tmpl is None or pos in reserved or level.is_blocked(pos):
                continue
            level.add_actor(
                spawn_monster(
                    tmpl,
                    next_id,
                    pos,
                    depth=level.depth,
                    hp_per_depth=cfg.monster_hp_per_depth,
                    attack_every=cfg.monster_attack_every,
                )
            )
            next_id += 1

        for _ in range(rng.randint(0, max_items)):
            pos = (rng.randint(x + 1, x + w - 1), rng.randint(y + 1, y + h - 1))
            tmpl = weighted_choice(rng, items, level.depth)
            if tmpl is None or pos in reserved or not level.world.is_walkable(*pos):
                continue
            amount = rng.randint(*tmpl.amount) * level.depth if tmpl.amount[1] else 0
            level.add_item(make_item(tmpl, next_id, pos, amount=amount))
            next_id += 1

    return next_id
