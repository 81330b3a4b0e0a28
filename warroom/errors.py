"""Error taxonomy for the War Room."""


class WarRoomError(Exception):
    """Base for all War Room errors."""


class InvalidInputError(WarRoomError):
    """Rejected user input or an action attempted in the wrong session state."""


class InvocationError(WarRoomError):
    """Raised when an external model call fails."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class MalformedOutputError(WarRoomError):
    """A model call succeeded but returned a value not matching its contract."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class MalformedVerdictError(MalformedOutputError):
    """Judge payload cannot be parsed into a Verdict."""


class MalformedQuestionsError(MalformedOutputError):
    """Clarification payload is not exactly three questions."""
