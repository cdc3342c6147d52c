from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Optional

from delver.state.actors import AIBehavior, Actor
from delver.state.entities import EffectKind
from delver.state.world import Direction, chebyshev
from delver.systems.commands import Command
from delver.systems.fov import can_see

if TYPE_CHECKING:
    from delver.game import Game


def choose_command(game: "Game", monster: Actor) -> Command:
    """Decide what a monster does this round."""
    if monster.has_status(EffectKind.CONFUSE):
        return random_step(game)
    behavior = _BEHAVIORS.get(monster.ai or AIBehavior.IDLE, _idle)
    return behavior(game, monster)


def random_step(game: "Game") -> Command:
    # a blocked stumble is rejected by the resolver and wastes the turn
    return Command.move(game.rng.choice(list(Direction)))


def _sees_player(game: "Game", monster: Actor) -> Optional[Actor]:
    player = game.level.player
    if player is None:
        return None
    if not can_see(game.level, monster.pos, player.pos, game.cfg.monster_sight):
        return None
    return player


def _adjacent_attack(monster: Actor, player: Actor) -> Optional[Command]:
    if chebyshev(monster.pos, player.pos) == 1:
        direction = Direction.toward(monster.pos, player.pos)
        if direction is not None:
            return Command.attack(direction)
    return None


def step_toward(game: "Game", monster: Actor, target: Actor) -> Command:
    """Step straight at the target, sliding along one axis when blocked."""
    direction = Direction.toward(monster.pos, target.pos)
    if direction is None:
        return Command.wait()
    options = [direction]
    if direction.dx and direction.dy:
        options.append(Direction.from_delta(direction.dx, 0))
        options.append(Direction.from_delta(0, direction.dy))
    for option in options:
        if option is not None and not game.level.is_blocked(option.step(monster.pos)):
            return Command.move(option)
    return Command.wait()


def _chase(game: "Game", monster: Actor) -> Command:
    player = _sees_player(game, monster)
    if player is None:
        return Command.wait()
    return _adjacent_attack(monster, player) or step_toward(game, monster, player)


def _wander(game: "Game", monster: Actor) -> Command:
    player = _sees_player(game, monster)
    if player is None:
        return random_step(game)
    return _adjacent_attack(monster, player) or step_toward(game, monster, player)


def _idle(game: "Game", monster: Actor) -> Command:
    player = game.level.player
    if player is None:
        return Command.wait()
    return _adjacent_attack(monster, player) or Command.wait()


_BEHAVIORS: Dict[AIBehavior, Callable[["Game", Actor], Command]] = {
    AIBehavior.CHASE: _chase,
    AIBehavior.WANDER: _wander,
    AIBehavior.IDLE: _idle,
}
