from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from delver import mapgen
from delver.config import GameConfig
from delver.content import load_item_templates, make_item
from delver.errors import GameOver, InvalidCommand, RoundInProgress, SaveFormatError
from delver.logging import get_logger
from delver.rng import RNG, new_rng
from delver.snapshot import Snapshot, take
from delver.state import saves
from delver.state.actors import PLAYER_ID, Actor
from delver.state.level import Level
from delver.systems import fov
from delver.systems.actions import equip
from delver.systems.commands import Command, CommandKind
from delver.systems.progression import Progression, recompute_modifiers
from delver.systems.turns import RoundReport, TurnScheduler

logger = get_logger(__name__)


@dataclass
class MessageLog:
    capacity: int = 1000
    messages: deque[str] | None = None

    def __post_init__(self) -> None:
        # deque for O(1) append/pop with bounded history
        self.messages = deque(self.messages or (), maxlen=self.capacity)
        self.added = len(self.messages)

    def add(self, text: str) -> None:
        self.messages.append(text)
        self.added += 1

    def tail(self, n: int) -> List[str]:
        if n <= 0:
            return []
        return list(self.messages)[-n:]

    def mark(self) -> int:
        return self.added

    def since(self, mark: int) -> List[str]:
        """Messages added after `mark` (as many as are still kept)."""
        return self.tail(min(self.added - mark, len(self.messages)))


class CommandSource(Protocol):
    def next_command(self, snapshot: Snapshot) -> Optional[Command]: ...

    def save(self, data: bytes) -> None: ...


class Game:
    """One play session. Everything mutable hangs off this object."""

    def __init__(self, cfg: GameConfig, seed: int, level: Level, rng: RNG,
                 next_id: int, round: int = 0, log: Optional[MessageLog] = None) -> None:
        self.cfg = cfg
        self.seed = seed
        self.level = level
        self.rng = rng
        self.next_id = next_id
        self.round = round
        self.log = log or MessageLog(capacity=cfg.message_capacity)
        self.scheduler = TurnScheduler()
        self.over = False
        self.fallen: Optional[Actor] = None
        self.fov_dirty = False
        self.leveled: List[int] = []
        self.last_messages: List[str] = []

    # --- construction ---

    @classmethod
    def new(cls, cfg: Optional[GameConfig] = None, seed: Optional[int] = None) -> "Game":
        cfg = cfg or GameConfig()
        seed = cfg.seed if seed is None else seed
        level = mapgen.generate(seed, 1, cfg, first_id=PLAYER_ID + 1)
        game = cls(cfg, seed, level, new_rng(seed, "game"), next_id=_next_free_id(level, PLAYER_ID + 1))

        templates = load_item_templates()
        player = level.player
        for template_id in cfg.starting_kit:
            item = level.add_held_item(make_item(templates[template_id], game.new_id()), player)
            if item.equipment is not None and player.equipment.get(item.equipment.slot) is None:
                equip(game, player, item)
        recompute_modifiers(level, player)

        game.update_fov()
        game.message("Welcome, delver. The only way out is further down.")
        game.last_messages = game.log.tail(1)
        logger.info("game_started", seed=seed, depth=level.depth)
        return game

    @classmethod
    def from_save(cls, data: bytes, cfg: Optional[GameConfig] = None) -> "Game":
        cfg = cfg or GameConfig()
        level, _, memory, context = saves.load_game(data)
        context = context or {}
        try:
            seed = int(context.get("seed", cfg.seed))
            next_id = max(int(context.get("next_id", 0)), _next_free_id(level, PLAYER_ID + 1))
            rng = new_rng(seed, "game")
            if context.get("rng_state") is not None:
                rng.import_state(context["rng_state"])
            log = MessageLog(capacity=cfg.message_capacity, messages=deque(
                str(m) for m in context.get("messages", [])))
            game = cls(cfg, seed, level, rng, next_id=next_id,
                       round=int(context.get("round", 0)), log=log)
            game.last_messages = [str(m) for m in context.get("last_messages", [])]
        except (TypeError, ValueError) as exc:
            raise SaveFormatError(f"malformed context block: {exc!r}") from exc
        fov.restore_memory(level, memory)
        game.update_fov()
        logger.info("game_loaded", seed=seed, depth=level.depth, round=game.round)
        return game

    @classmethod
    def load_from(cls, path: Path | str, cfg: Optional[GameConfig] = None) -> "Game":
        return cls.from_save(Path(path).read_bytes(), cfg)

    # --- helpers used by the systems ---

    @property
    def player(self) -> Actor:
        player = self.level.player
        if player is None:
            if self.fallen is None:
                raise GameOver("No player on the level.")
            return self.fallen
        return player

    def new_id(self) -> int:
        value = self.next_id
        self.next_id += 1
        return value

    def message(self, text: str) -> None:
        self.log.add(text)

    def update_fov(self) -> None:
        player = self.level.player
        if player is not None:
            fov.update_fov(self.level, player.pos, self.cfg.fov_radius)
        self.fov_dirty = False

    def descend(self) -> None:
        """Carry the player and its belongings to a fresh level one deeper."""
        old = self.level
        player = old.player
        # nothing changes until the new level exists
        new_level = mapgen.generate(self.seed, old.depth + 1, self.cfg, first_id=self.next_id)

        held = old.held_items(player)
        rest = int(player.max_hp * self.cfg.descent_heal_fraction)
        player.stats.hp = min(player.max_hp, player.stats.hp + rest)
        self.message("You take a moment to rest, and recover your strength.")

        self.next_id = _next_free_id(new_level, self.next_id)
        spawn = new_level.remove_actor(PLAYER_ID)
        player.pos = spawn.pos
        new_level.add_actor(player)
        for item in held:
            new_level.items[item.id] = item

        self.level = new_level
        self.update_fov()
        self.message(
            "After a rare moment of peace, you descend deeper into the heart of the dungeon..."
        )
        logger.info("level_descended", depth=new_level.depth, hp=player.hp, next_id=self.next_id)

    # --- driving the game ---

    def submit(self, command: Command) -> RoundReport:
        report = self.scheduler.play_round(self, command)
        self.last_messages = report.messages
        return report

    def snapshot(self) -> Snapshot:
        return take(self)

    def context(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "round": self.round,
            "next_id": self.next_id,
            "rng_state": self.rng.export_state(),
            "messages": self.log.tail(50),
            "last_messages": list(self.last_messages),
        }

    def save(self) -> bytes:
        if self.scheduler.in_round:
            raise RoundInProgress("Cannot save while a round is being resolved.")
        if self.over:
            raise GameOver("Cannot save a finished game.")
        data = saves.save(
            self.level,
            Progression.of(self.player),
            fov.explored_memory(self.level),
            context=self.context(),
        )
        logger.info("game_saved", depth=self.level.depth, round=self.round, size=len(data))
        return data

    def save_to(self, path: Path | str) -> Path:
        return saves.write_save(path, self.save())

    def run(self, source: CommandSource) -> Snapshot:
        """Feed commands from `source` until it quits or the player dies."""
        while not self.over:
            command = source.next_command(self.snapshot())
            if command is None or command.kind is CommandKind.QUIT:
                break
            if command.kind is CommandKind.SAVE:
                source.save(self.save())
                continue
            try:
                self.submit(command)
            except InvalidCommand as exc:
                self.message(str(exc))
                self.last_messages = [str(exc)]
        return self.snapshot()


def _next_free_id(level: Level, floor: int) -> int:
    ids = list(level.actors) + list(level.items)
    return max([floor] + [i + 1 for i in ids])
