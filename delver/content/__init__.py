"""Data-driven monster and item templates."""

from .templates import (
    ItemTemplate,
    MonsterTemplate,
    load_item_templates,
    load_monster_templates,
    make_gold,
    make_item,
    spawn_monster,
    weighted_choice,
)

__all__ = [
    "ItemTemplate",
    "MonsterTemplate",
    "load_item_templates",
    "load_monster_templates",
    "make_gold",
    "make_item",
    "spawn_monster",
    "weighted_choice",
]
