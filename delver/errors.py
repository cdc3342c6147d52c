"""Error kinds raised by the simulation core."""


class DelverError(Exception):
    """Base class for every error raised by delver."""


class GenerationFailure(DelverError):
    """The dungeon generator could not place the minimum number of rooms."""


class InvalidCommand(DelverError):
    """An illegal action. Consumes the actor's turn; never escapes a round."""


class SaveFormatError(DelverError):
    """Save data is corrupt, truncated or inconsistent."""


class UnsupportedSaveVersion(SaveFormatError):
    def __init__(self, version: object) -> None:
        super().__init__(f"Unsupported save format version: {version!r}")
        self.version = version


class InvariantViolation(DelverError):
    """The world model was asked to enter an inconsistent state."""


class OutOfBoundsAccess(InvariantViolation):
    def __init__(self, pos: object, width: int, height: int) -> None:
        super().__init__(f"Position {pos!r} outside {width}x{height} grid")
        self.pos = pos


class RoundInProgress(DelverError):
    """Saving is only allowed between rounds."""


class GameOver(DelverError):
    """The player is dead; no more commands are accepted."""
