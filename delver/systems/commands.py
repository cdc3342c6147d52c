from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from delver.state.world import Direction


class CommandKind(Enum):
    MOVE = "move"
    ATTACK = "attack"
    USE_ITEM = "use"
    EQUIP_ITEM = "equip"
    PICK_UP = "pick_up"
    DROP_ITEM = "drop"
    DESCEND = "descend"
    WAIT = "wait"
    # meta: handled between rounds, never cost a turn
    SAVE = "save"
    QUIT = "quit"

    @property
    def is_meta(self) -> bool:
        return self in (CommandKind.SAVE, CommandKind.QUIT)


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    direction: Optional[Direction] = None
    item_id: Optional[int] = None

    @classmethod
    def move(cls, direction: Direction) -> "Command":
        return cls(CommandKind.MOVE, direction=direction)

    @classmethod
    def attack(cls, direction: Direction) -> "Command":
        return cls(CommandKind.ATTACK, direction=direction)

    @classmethod
    def use(cls, item_id: int) -> "Command":
        return cls(CommandKind.USE_ITEM, item_id=item_id)

    @classmethod
    def equip(cls, item_id: int) -> "Command":
        return cls(CommandKind.EQUIP_ITEM, item_id=item_id)

    @classmethod
    def pick_up(cls) -> "Command":
        return cls(CommandKind.PICK_UP)

    @classmethod
    def drop(cls, item_id: int) -> "Command":
        return cls(CommandKind.DROP_ITEM, item_id=item_id)

    @classmethod
    def descend(cls) -> "Command":
        return cls(CommandKind.DESCEND)

    @classmethod
    def wait(cls) -> "Command":
        return cls(CommandKind.WAIT)

    @classmethod
    def save(cls) -> "Command":
        return cls(CommandKind.SAVE)

    @classmethod
    def quit(cls) -> "Command":
        return cls(CommandKind.QUIT)
