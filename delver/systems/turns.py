from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List

from delver.errors import GameOver, InvalidCommand
from delver.logging import get_logger
from delver.state.actors import Actor
from delver.systems import actions, ai, effects
from delver.systems.commands import Command

if TYPE_CHECKING:
    from delver.game import Game

logger = get_logger(__name__)


class TurnPhase(Enum):
    AWAITING_ACTION = "awaiting_action"
    VALIDATING = "validating"
    APPLYING = "applying"
    RESOLVED = "resolved"


@dataclass
class RoundReport:
    round: int
    messages: List[str] = field(default_factory=list)
    descended: bool = False
    over: bool = False
    leveled_up: List[int] = field(default_factory=list)


class TurnScheduler:
    """Fixed-order rounds: the player acts, then every monster by id."""

    def __init__(self) -> None:
        self.phase = TurnPhase.AWAITING_ACTION
        self.in_round = False
        self.acting: int | None = None

    def play_round(self, game: "Game", command: Command) -> RoundReport:
        if game.over:
            raise GameOver("The game is over.")
        if command.kind.is_meta:
            raise InvalidCommand(f"'{command.kind.value}' is handled between rounds.")

        mark = game.log.mark()
        level = game.level
        game.leveled.clear()
        self.in_round = True
        try:
            self._act(game, level.player, command)
            for monster in level.monsters():
                if game.over or game.level is not level:
                    break
                if monster.id not in level.actors:
                    continue
                self._act(game, monster, ai.choose_command(game, monster))
            if not game.over:
                effects.tick_statuses(game)
            if game.fov_dirty and not game.over:
                game.update_fov()
            game.round += 1
        finally:
            self.in_round = False
            self.acting = None
            self.phase = TurnPhase.AWAITING_ACTION

        report = RoundReport(
            round=game.round,
            messages=game.log.since(mark),
            descended=game.level is not level,
            over=game.over,
            leveled_up=list(game.leveled),
        )
        logger.debug(
            "round_resolved",
            round=report.round,
            depth=game.level.depth,
            messages=len(report.messages),
            descended=report.descended,
            over=report.over,
        )
        return report

    def _act(self, game: "Game", actor: Actor, command: Command) -> None:
        self.acting = actor.id
        self.phase = TurnPhase.VALIDATING
        try:
            plan = actions.validate(game, actor, command)
        except InvalidCommand as exc:
            # the turn is spent either way
            if actor.is_player:
                game.message(str(exc))
            logger.debug("command_rejected", actor=actor.id, command=command.kind.value, reason=str(exc))
            self.phase = TurnPhase.RESOLVED
            return
        self.phase = TurnPhase.APPLYING
        actions.apply(game, actor, plan)
        self.phase = TurnPhase.RESOLVED
