"""Save/load for a dungeon level and the player's progress.

A save is the 4-byte magic ``DLVR`` followed by zlib-compressed UTF-8 JSON.
Loading either returns a fully consistent Level or raises SaveFormatError;
nothing half-built escapes.
"""
from __future__ import annotations

import json
import os
import tempfile
import zlib
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from delver.errors import InvariantViolation, SaveFormatError, UnsupportedSaveVersion
from delver.logging import get_logger
from delver.state.actors import AIBehavior, Actor, Faction, Stats, StatusEffect
from delver.state.entities import Effect, EffectKind, EquipSlot, Equipment, Item, ItemKind
from delver.state.level import Level
from delver.state.world import Pos, TileKind, World
from delver.systems.progression import Progression, compute_modifiers

logger = get_logger(__name__)

MAGIC = b"DLVR"
SAVE_VERSION = 1

FovMemory = FrozenSet[Pos]
Loaded = Tuple[Level, Progression, FovMemory]


# --- encoding ---


def _encode_effect(effect: Optional[Effect]) -> Optional[Dict[str, Any]]:
    if effect is None:
        return None
    return {
        "kind": effect.kind.value,
        "amount": effect.amount,
        "duration": effect.duration,
        "radius": effect.radius,
        "range": effect.range,
    }


def _encode_equipment(equipment: Optional[Equipment]) -> Optional[Dict[str, Any]]:
    if equipment is None:
        return None
    return {
        "slot": equipment.slot.value,
        "attack_bonus": equipment.attack_bonus,
        "defense_bonus": equipment.defense_bonus,
        "max_hp_bonus": equipment.max_hp_bonus,
    }


def _encode_actor(actor: Actor) -> Dict[str, Any]:
    s = actor.stats
    return {
        "id": actor.id,
        "name": actor.name,
        "kind": actor.kind,
        "pos": list(actor.pos),
        "faction": actor.faction.value,
        "stats": {
            "hp": s.hp,
            "max_hp": s.max_hp,
            "attack": s.attack,
            "defense": s.defense,
            "xp": s.xp,
            "level": s.level,
        },
        "inventory": list(actor.inventory),
        "equipment": {slot.value: item_id for slot, item_id in actor.equipment.items()},
        "statuses": [
            {
                "kind": st.kind.value,
                "remaining": st.remaining,
                "magnitude": st.magnitude,
                "source_id": st.source_id,
            }
            for st in actor.statuses.values()
        ],
        "ai": actor.ai.value if actor.ai else None,
        "gold": actor.gold,
    }


def _encode_item(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "kind": item.kind,
        "item_kind": item.item_kind.value,
        "pos": list(item.pos) if item.pos is not None else None,
        "owner": item.owner,
        "effect": _encode_effect(item.effect),
        "equipment": _encode_equipment(item.equipment),
        "amount": item.amount,
    }


def save(level: Level, progression: Progression, fov_memory: Iterable[Pos],
         context: Optional[Dict[str, Any]] = None) -> bytes:
    """Serialize a level, the player's progression and explored tiles."""
    world = level.world
    memory = set(fov_memory)
    doc = {
        "version": SAVE_VERSION,
        "depth": level.depth,
        "width": world.width,
        "height": world.height,
        "entry": list(level.entry),
        "stairs_down": list(level.stairs_down),
        "kinds": ["".join(tile.kind.value for tile in row) for row in world.tiles],
        "explored": [
            "".join("1" if (x, y) in memory else "0" for x in range(world.width))
            for y in range(world.height)
        ],
        "actors": [_encode_actor(a) for _, a in sorted(level.actors.items())],
        "items": [_encode_item(i) for _, i in sorted(level.items.items())],
        "progression": {"xp": progression.xp, "level": progression.level},
        "context": context,
    }
    raw = json.dumps(doc, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return MAGIC + zlib.compress(raw)


# --- decoding ---


def _pos(raw: Any) -> Pos:
    x, y = raw
    return (int(x), int(y))


def _decode_effect(raw: Optional[Dict[str, Any]]) -> Optional[Effect]:
    if raw is None:
        return None
    return Effect(
        kind=EffectKind(raw["kind"]),
        amount=int(raw["amount"]),
        duration=int(raw["duration"]),
        radius=int(raw["radius"]),
        range=int(raw["range"]),
    )


def _decode_equipment(raw: Optional[Dict[str, Any]]) -> Optional[Equipment]:
    if raw is None:
        return None
    return Equipment(
        slot=EquipSlot(raw["slot"]),
        attack_bonus=int(raw["attack_bonus"]),
        defense_bonus=int(raw["defense_bonus"]),
        max_hp_bonus=int(raw["max_hp_bonus"]),
    )


def _decode_actor(raw: Dict[str, Any]) -> Actor:
    s = raw["stats"]
    equipment = {slot: None for slot in EquipSlot}
    for slot, item_id in raw["equipment"].items():
        equipment[EquipSlot(slot)] = int(item_id) if item_id is not None else None
    statuses = {}
    for st in raw["statuses"]:
        status = StatusEffect(
            kind=EffectKind(st["kind"]),
            remaining=int(st["remaining"]),
            magnitude=int(st["magnitude"]),
            source_id=st["source_id"],
        )
        statuses[status.kind] = status
    return Actor(
        id=int(raw["id"]),
        name=str(raw["name"]),
        kind=str(raw["kind"]),
        pos=_pos(raw["pos"]),
        faction=Faction(raw["faction"]),
        stats=Stats(
            hp=int(s["hp"]),
            max_hp=int(s["max_hp"]),
            attack=int(s["attack"]),
            defense=int(s["defense"]),
            xp=int(s["xp"]),
            level=int(s["level"]),
        ),
        inventory=[int(i) for i in raw["inventory"]],
        equipment=equipment,
        statuses=statuses,
        ai=AIBehavior(raw["ai"]) if raw["ai"] else None,
        gold=int(raw["gold"]),
    )


def _decode_item(raw: Dict[str, Any]) -> Item:
    return Item(
        id=int(raw["id"]),
        name=str(raw["name"]),
        kind=str(raw["kind"]),
        item_kind=ItemKind(raw["item_kind"]),
        pos=_pos(raw["pos"]) if raw["pos"] is not None else None,
        owner=int(raw["owner"]) if raw["owner"] is not None else None,
        effect=_decode_effect(raw["effect"]),
        equipment=_decode_equipment(raw["equipment"]),
        amount=int(raw["amount"]),
    )


def _decode_grid(doc: Dict[str, Any]) -> Tuple[World, FovMemory]:
    world = World(int(doc["width"]), int(doc["height"]))
    kinds: List[str] = doc["kinds"]
    explored: List[str] = doc["explored"]
    if len(kinds) != world.height or len(explored) != world.height:
        raise SaveFormatError("grid height does not match")
    memory = set()
    for y, (row, seen) in enumerate(zip(kinds, explored)):
        if len(row) != world.width or len(seen) != world.width:
            raise SaveFormatError(f"grid row {y} has the wrong width")
        for x, (glyph, flag) in enumerate(zip(row, seen)):
            tile = world.tiles[y][x]
            tile.kind = TileKind(glyph)
            if flag == "1":
                tile.explored = True
                memory.add((x, y))
            elif flag != "0":
                raise SaveFormatError(f"bad explored flag {flag!r} at {(x, y)}")
    return world, frozenset(memory)


def _decode_document(data: bytes) -> Dict[str, Any]:
    if not isinstance(data, (bytes, bytearray)) or not data.startswith(MAGIC):
        raise SaveFormatError("not a delver save (bad magic)")
    try:
        raw = zlib.decompress(bytes(data[len(MAGIC):]))
    except zlib.error as exc:
        raise SaveFormatError(f"corrupt or truncated save: {exc}") from exc
    try:
        doc = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise SaveFormatError(f"malformed save document: {exc}") from exc
    if not isinstance(doc, dict):
        raise SaveFormatError("malformed save document: expected an object")
    version = doc.get("version")
    if version != SAVE_VERSION:
        raise UnsupportedSaveVersion(version)
    return doc


def load_game(data: bytes) -> Tuple[Level, Progression, FovMemory, Optional[Dict[str, Any]]]:
    """Like load(), also returning the saved simulation context (or None)."""
    doc = _decode_document(data)
    try:
        world, memory = _decode_grid(doc)
        level = Level(
            world=world,
            depth=int(doc["depth"]),
            entry=_pos(doc["entry"]),
            stairs_down=_pos(doc["stairs_down"]),
        )
        for raw in doc["actors"]:
            actor = _decode_actor(raw)
            if actor.id in level.actors:
                raise SaveFormatError(f"duplicate actor id {actor.id}")
            level.actors[actor.id] = actor
        for raw in doc["items"]:
            item = _decode_item(raw)
            if item.id in level.items:
                raise SaveFormatError(f"duplicate item id {item.id}")
            level.items[item.id] = item
        # hp is checked against the saved bonuses as-is, never clamped
        for actor in level.actors.values():
            actor.modifiers = compute_modifiers(level, actor)
        level.check_invariants()
        progression = Progression(
            xp=int(doc["progression"]["xp"]),
            level=int(doc["progression"]["level"]),
        )
        if progression != Progression.of(level.player):
            raise SaveFormatError(
                f"progression {progression} disagrees with the player's stats"
            )
        context = doc.get("context")
        if context is not None and not isinstance(context, dict):
            raise SaveFormatError("malformed context block")
    except SaveFormatError as exc:
        logger.warning("save_rejected", reason=str(exc))
        raise
    except (InvariantViolation, KeyError, TypeError, ValueError, IndexError, AttributeError) as exc:
        logger.warning("save_rejected", reason=str(exc), error=type(exc).__name__)
        raise SaveFormatError(f"inconsistent save data: {exc!r}") from exc
    return level, progression, memory, context


def load(data: bytes) -> Loaded:
    level, progression, memory, _ = load_game(data)
    return level, progression, memory


def write_save(path: Path | str, data: bytes) -> Path:
    """Write `data` next to `path` and swap it in, so a failure never clobbers an old save."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise
    return path
