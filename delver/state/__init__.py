from .world import Direction, Pos, Tile, TileKind, World
from .entities import Effect, EffectKind, EquipSlot, Equipment, Item, ItemKind
from .actors import PLAYER_ID, AIBehavior, Actor, Faction, Modifiers, Stats, StatusEffect
from .level import Level

__all__ = [
    "Direction",
    "Pos",
    "Tile",
    "TileKind",
    "World",
    "Effect",
    "EffectKind",
    "EquipSlot",
    "Equipment",
    "Item",
    "ItemKind",
    "PLAYER_ID",
    "AIBehavior",
    "Actor",
    "Faction",
    "Modifiers",
    "Stats",
    "StatusEffect",
    "Level",
]
