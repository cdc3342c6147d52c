from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from delver.state.entities import EffectKind, EquipSlot

Pos = Tuple[int, int]

PLAYER_ID = 0


class Faction(Enum):
    PLAYER = "player"
    MONSTER = "monster"


class AIBehavior(Enum):
    CHASE = "chase"
    WANDER = "wander"
    IDLE = "idle"


@dataclass
class Stats:
    """Base stats; equipment and buffs live in Modifiers."""
    hp: int = 5
    max_hp: int = 5
    attack: int = 1
    defense: int = 0
    xp: int = 0
    level: int = 1


@dataclass
class Modifiers:
    attack: int = 0
    defense: int = 0
    max_hp: int = 0


@dataclass
class StatusEffect:
    kind: EffectKind
    remaining: int
    magnitude: int = 0
    source_id: Optional[int] = None


def _empty_slots() -> Dict[EquipSlot, Optional[int]]:
    return {slot: None for slot in EquipSlot}


@dataclass
class Actor:
    """Player or monster. Items are referenced by id, never by object."""
    id: int
    name: str
    kind: str
    pos: Pos
    faction: Faction = Faction.MONSTER
    stats: Stats = field(default_factory=Stats)
    inventory: List[int] = field(default_factory=list)
    equipment: Dict[EquipSlot, Optional[int]] = field(default_factory=_empty_slots)
    statuses: Dict[EffectKind, StatusEffect] = field(default_factory=dict)
    ai: Optional[AIBehavior] = None
    gold: int = 0
    # derived from equipment + statuses; see progression.recompute_modifiers
    modifiers: Modifiers = field(default_factory=Modifiers)

    @property
    def x(self) -> int:
        return self.pos[0]

    @property
    def y(self) -> int:
        return self.pos[1]

    @property
    def is_player(self) -> bool:
        return self.faction is Faction.PLAYER

    @property
    def alive(self) -> bool:
        return self.stats.hp > 0

    @property
    def attack(self) -> int:
        return self.stats.attack + self.modifiers.attack

    @property
    def defense(self) -> int:
        return self.stats.defense + self.modifiers.defense

    @property
    def max_hp(self) -> int:
        return self.stats.max_hp + self.modifiers.max_hp

    @property
    def hp(self) -> int:
        return self.stats.hp

    def clamp(self) -> None:
        self.stats.hp = max(0, min(self.stats.hp, self.max_hp))

    def held_ids(self) -> List[int]:
        """Inventory plus equipped items, in a stable order."""
        ids = list(self.inventory)
        ids.extend(item_id for item_id in self.equipment.values() if item_id is not None)
        return ids

    def equipped(self, item_id: int) -> Optional[EquipSlot]:
        for slot, held in self.equipment.items():
            if held == item_id:
                return slot
        return None

    def has_status(self, kind: EffectKind) -> bool:
        return kind in self.statuses
