# delver/state/entities.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

Pos = Tuple[int, int]


class ItemKind(Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    SCROLL = "scroll"
    GOLD = "gold"

    @property
    def consumable(self) -> bool:
        return self in (ItemKind.POTION, ItemKind.SCROLL)


class EquipSlot(Enum):
    WEAPON = "weapon"
    ARMOR = "armor"


class EffectKind(Enum):
    HEAL = "heal"
    LIGHTNING = "lightning"
    FIREBALL = "fireball"
    CONFUSE = "confuse"
    STRENGTH = "strength"
    BURN = "burn"


@dataclass(frozen=True)
class Effect:
    """What a consumable does when used."""
    kind: EffectKind
    amount: int = 0
    duration: int = 0
    radius: int = 0
    range: int = 0


@dataclass(frozen=True)
class Equipment:
    slot: EquipSlot
    attack_bonus: int = 0
    defense_bonus: int = 0
    max_hp_bonus: int = 0


@dataclass
class Item:
    """Something that lies on a tile or is carried by exactly one actor.

    `pos` and `owner` are mutually exclusive; the Level keeps them in sync.
    """
    id: int
    name: str
    kind: str                      # template id, e.g. "healing_potion"
    item_kind: ItemKind
    pos: Optional[Pos] = None
    owner: Optional[int] = None
    effect: Optional[Effect] = None
    equipment: Optional[Equipment] = None
    amount: int = 0                # gold only

    @property
    def held(self) -> bool:
        return self.owner is not None

    @property
    def glyph(self) -> str:
        return {
            ItemKind.WEAPON: "/",
            ItemKind.ARMOR: "[",
            ItemKind.POTION: "!",
            ItemKind.SCROLL: "?",
            ItemKind.GOLD: "$",
        }[self.item_kind]
