from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List

from delver.config import GameConfig
from delver.logging import get_logger
from delver.state.actors import Actor, Modifiers
from delver.state.entities import EffectKind
from delver.state.level import Level

if TYPE_CHECKING:
    from delver.game import Game

logger = get_logger(__name__)


def xp_to_next(level: int, cfg: GameConfig) -> int:
    return cfg.xp_base + level * cfg.xp_factor


@dataclass
class Progression:
    """The player's experience track, saved alongside the level."""
    xp: int = 0
    level: int = 1

    @classmethod
    def of(cls, actor: Actor) -> "Progression":
        return cls(xp=actor.stats.xp, level=actor.stats.level)

    def apply_to(self, actor: Actor) -> None:
        actor.stats.xp = self.xp
        actor.stats.level = self.level


def level_up(actor: Actor, cfg: GameConfig) -> None:
    stats = actor.stats
    stats.level += 1
    stats.max_hp += cfg.hp_per_level
    stats.attack += cfg.attack_per_level
    if cfg.defense_every > 0 and stats.level % cfg.defense_every == 0:
        stats.defense += 1
    stats.hp = actor.max_hp


def grant_xp(game: "Game", actor: Actor, amount: int) -> List[int]:
    """Add experience; returns every level reached on the way."""
    if amount <= 0:
        return []
    stats = actor.stats
    stats.xp += amount
    reached: List[int] = []
    while stats.xp >= xp_to_next(stats.level, game.cfg):
        stats.xp -= xp_to_next(stats.level, game.cfg)
        level_up(actor, game.cfg)
        reached.append(stats.level)
        game.message(f"Your battle skills grow stronger! You reached level {stats.level}!")
        logger.info("player_leveled", level=stats.level, max_hp=stats.max_hp, attack=stats.attack)
    game.leveled.extend(reached)
    return reached


def recompute_modifiers(level: Level, actor: Actor) -> Modifiers:
    """Rebuild equipment and buff bonuses from scratch, then clamp hp."""
    mods = compute_modifiers(level, actor)
    actor.modifiers = mods
    actor.clamp()
    return mods


def compute_modifiers(level: Level, actor: Actor) -> Modifiers:
    """Equipment and buff bonuses for `actor`; changes nothing."""
    mods = Modifiers()
    for item_id in actor.equipment.values():
        if item_id is None:
            continue
        equipment = level.items[item_id].equipment
        if equipment is None:
            continue
        mods.attack += equipment.attack_bonus
        mods.defense += equipment.defense_bonus
        mods.max_hp += equipment.max_hp_bonus
    strength = actor.statuses.get(EffectKind.STRENGTH)
    if strength is not None:
        mods.attack += strength.magnitude
    return mods
