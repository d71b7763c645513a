class ValidationError(ValueError):
    """Malformed input, reported before anything is written."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(LookupError):
    """A user-initiated action referenced a record that no longer exists."""


class InvalidTransitionError(ValueError):
    """A pending occurrence was asked to move to a state it cannot reach."""
