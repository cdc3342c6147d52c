from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import yaml

from delver.config import DepthTable, from_depth_table
from delver.state.actors import AIBehavior, Actor, Faction, Stats
from delver.state.entities import (
    Effect,
    EffectKind,
    EquipSlot,
    Equipment,
    Item,
    ItemKind,
)

CONTENT_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class MonsterTemplate:
    id: str
    name: str
    glyph: str
    hp: int
    attack: int
    defense: int
    xp: int
    ai: AIBehavior
    gold: Tuple[int, int]
    weights: DepthTable

    def weight_at(self, depth: int) -> int:
        return from_depth_table(self.weights, depth)


@dataclass(frozen=True)
class ItemTemplate:
    id: str
    name: str
    kind: ItemKind
    effect: Optional[Effect]
    equipment: Optional[Equipment]
    amount: Tuple[int, int]
    weights: DepthTable

    def weight_at(self, depth: int) -> int:
        return from_depth_table(self.weights, depth)


def _table(raw: Iterable) -> DepthTable:
    return tuple((int(depth), int(weight)) for depth, weight in raw)


def _range(raw, default: Tuple[int, int] = (0, 0)) -> Tuple[int, int]:
    if raw is None:
        return default
    lo, hi = (int(v) for v in raw)
    return (lo, max(lo, hi))


def _build_monster(entry: dict) -> MonsterTemplate:
    return MonsterTemplate(
        id=entry["id"],
        name=entry.get("name", entry["id"]),
        glyph=entry.get("glyph", "m"),
        hp=int(entry.get("hp", 1)),
        attack=int(entry.get("attack", 1)),
        defense=int(entry.get("defense", 0)),
        xp=int(entry.get("xp", 0)),
        ai=AIBehavior(entry.get("ai", "chase")),
        gold=_range(entry.get("gold")),
        weights=_table(entry.get("weights", [[1, 1]])),
    )


def _build_item(entry: dict) -> ItemTemplate:
    effect = None
    equipment = None
    if entry.get("effect"):
        raw = entry["effect"]
        effect = Effect(
            kind=EffectKind(raw["kind"]),
            amount=int(raw.get("amount", 0)),
            duration=int(raw.get("duration", 0)),
            radius=int(raw.get("radius", 0)),
            range=int(raw.get("range", 0)),
        )
    if entry.get("equipment"):
        raw = entry["equipment"]
        equipment = Equipment(
            slot=EquipSlot(raw["slot"]),
            attack_bonus=int(raw.get("attack_bonus", 0)),
            defense_bonus=int(raw.get("defense_bonus", 0)),
            max_hp_bonus=int(raw.get("max_hp_bonus", 0)),
        )
    kind = ItemKind(entry["kind"])
    if kind.consumable and effect is None:
        raise ValueError(f"Consumable template {entry['id']!r} has no effect")
    if kind in (ItemKind.WEAPON, ItemKind.ARMOR) and equipment is None:
        raise ValueError(f"Equipment template {entry['id']!r} has no equipment block")
    return ItemTemplate(
        id=entry["id"],
        name=entry.get("name", entry["id"]),
        kind=kind,
        effect=effect,
        equipment=equipment,
        amount=_range(entry.get("amount")),
        weights=_table(entry.get("weights", [[1, 1]])),
    )


def _load_yaml_list(path: Path) -> list:
    if not path.exists():
        raise FileNotFoundError(f"Template file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        raise ValueError(f"Template file malformed: {path}")
    return [entry for entry in data if isinstance(entry, dict) and entry.get("id")]


# Parsed once per path; templates are immutable so sharing them is safe.
_MONSTER_CACHE: Dict[Path, Dict[str, MonsterTemplate]] = {}
_ITEM_CACHE: Dict[Path, Dict[str, ItemTemplate]] = {}


def load_monster_templates(path: Path | str | None = None) -> Dict[str, MonsterTemplate]:
    path = Path(path) if path is not None else CONTENT_DIR / "monsters.yaml"
    cached = _MONSTER_CACHE.get(path)
    if cached is None:
        cached = {}
        for entry in _load_yaml_list(path):
            tmpl = _build_monster(entry)
            cached[tmpl.id] = tmpl
        _MONSTER_CACHE[path] = cached
    return cached


def load_item_templates(path: Path | str | None = None) -> Dict[str, ItemTemplate]:
    path = Path(path) if path is not None else CONTENT_DIR / "items.yaml"
    cached = _ITEM_CACHE.get(path)
    if cached is None:
        cached = {}
        for entry in _load_yaml_list(path):
            tmpl = _build_item(entry)
            cached[tmpl.id] = tmpl
        _ITEM_CACHE[path] = cached
    return cached


# --- factories ---


def spawn_monster(tmpl: MonsterTemplate, actor_id: int, pos: Tuple[int, int], depth: int = 1,
                  hp_per_depth: int = 0, attack_every: int = 0) -> Actor:
    """Create a monster Actor from a template, scaled for `depth`."""
    below = max(0, depth - 1)
    hp = tmpl.hp + hp_per_depth * below
    attack = tmpl.attack + (below // attack_every if attack_every > 0 else 0)
    return Actor(
        id=actor_id,
        name=tmpl.name,
        kind=tmpl.id,
        pos=pos,
        faction=Faction.MONSTER,
        stats=Stats(hp=hp, max_hp=hp, attack=attack, defense=tmpl.defense, xp=tmpl.xp, level=1),
        ai=tmpl.ai,
    )


def make_item(tmpl: ItemTemplate, item_id: int, pos: Optional[Tuple[int, int]] = None,
              amount: int = 0) -> Item:
    return Item(
        id=item_id,
        name=tmpl.name,
        kind=tmpl.id,
        item_kind=tmpl.kind,
        pos=pos,
        effect=tmpl.effect,
        equipment=tmpl.equipment,
        amount=amount,
    )


def make_gold(item_id: int, pos: Tuple[int, int], amount: int) -> Item:
    return Item(
        id=item_id,
        name="gold",
        kind="gold",
        item_kind=ItemKind.GOLD,
        pos=pos,
        amount=amount,
    )


def weighted_choice(rng, templates: Iterable, depth: int):
    """Pick a template by its depth weight; None when every weight is 0."""
    pool = [(t, t.weight_at(depth)) for t in templates]
    pool = [(t, w) for t, w in pool if w > 0]
    if not pool:
        return None
    total = sum(w for _, w in pool)
    roll = rng.randrange(total)
    for tmpl, weight in pool:
        if roll < weight:
            return tmpl
        roll -= weight
    return pool[-1][0]
