# errors.py
# Typed, recoverable failures raised by the engine and its best-score stores.


class GameError(ValueError):
    """Base class for rejected game operations. The engine state is unchanged."""


class InvalidDirection(GameError):
    """move() was given something other than UP, DOWN, LEFT or RIGHT."""


class SessionTerminated(GameError):
    """move() was called after the game was lost."""


class EngineBusy(GameError):
    """move() was called while another move was still being committed."""


class IllegalContinuation(GameError):
    """continue_after_win() was called when the game was not in the WON state."""


class StorageUnavailable(GameError):
    """The best-score store could not be read or written."""
