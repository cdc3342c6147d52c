from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


default_seed = 12345

# (depth, value) pairs; the value of the last entry whose depth is <= the
# current depth applies.
DepthTable = Tuple[Tuple[int, int], ...]


@dataclass
class GameConfig:
    # map
    map_width: int = 80
    map_height: int = 43
    room_min: int = 6
    room_max: int = 10
    max_rooms: int = 30
    room_attempts: int = 200
    min_rooms: int = 2
    seed: int = default_seed

    # sight
    fov_radius: int = 10
    monster_sight: int = 10

    # player
    player_hp: int = 100
    player_attack: int = 4
    player_defense: int = 1
    inventory_limit: int = 26
    starting_kit: Tuple[str, ...] = ("dagger",)

    # combat
    damage_variance: int = 0

    # progression
    xp_base: int = 200         # xp_to_next(level) = xp_base + level * xp_factor
    xp_factor: int = 150       # extra XP per level
    hp_per_level: int = 20
    attack_per_level: int = 1
    defense_every: int = 2     # +1 defense on levels divisible by this

    # descending
    descent_heal_fraction: float = 0.5

    # population scaling
    max_monsters_table: DepthTable = ((1, 2), (4, 3), (6, 5))
    max_items_table: DepthTable = ((1, 1), (4, 2))
    monster_hp_per_depth: int = 2
    monster_attack_every: int = 3  # +1 attack every N depths below the first

    # messages
    message_capacity: int = 1000

    # logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    json_logs: bool = False

    def __post_init__(self) -> None:
        if self.min_rooms < 2:
            raise ValueError("min_rooms must be at least 2 (spawn room + stairs room)")
        if self.room_min < 3 or self.room_max < self.room_min:
            raise ValueError(f"bad room size range {self.room_min}..{self.room_max}")
        if self.map_width <= self.room_max + 1 or self.map_height <= self.room_max + 1:
            raise ValueError("map is too small for the configured room sizes")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "GameConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        values = dict(data)
        for key in ("max_monsters_table", "max_items_table"):
            if key in values:
                values[key] = tuple((int(d), int(v)) for d, v in values[key])
        if "starting_kit" in values:
            values["starting_kit"] = tuple(values["starting_kit"])
        if values.get("log_file"):
            values["log_file"] = Path(values["log_file"])
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "GameConfig":
        """Load a config file; keys not present keep their defaults."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file malformed (expected a mapping): {path}")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls) -> "GameConfig":
        config_path = os.getenv("DELVER_CONFIG")
        cfg = cls.from_yaml(config_path) if config_path else cls()
        log_file = os.getenv("DELVER_LOG_FILE")
        cfg.log_level = os.getenv("DELVER_LOG_LEVEL", cfg.log_level)
        if log_file:
            cfg.log_file = Path(log_file)
        if os.getenv("DELVER_JSON_LOGS"):
            cfg.json_logs = os.getenv("DELVER_JSON_LOGS", "").lower() in ("true", "1", "yes")
        return cfg


def from_depth_table(table: DepthTable, depth: int) -> int:
    """Value for `depth` from a (depth, value) table; 0 before the first entry."""
    value = 0
    for min_depth, entry in table:
        if depth >= min_depth:
            value = entry
    return value
