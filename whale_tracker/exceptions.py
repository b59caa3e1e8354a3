class WhaleTrackerError(Exception):
    pass


class InvalidSnapshotError(WhaleTrackerError):
    pass


class MigrationError(WhaleTrackerError):
    """A guarded migration step failed; earlier steps stay applied."""

    def __init__(self, step: str, completed: list[str], cause: Exception) -> None:
        self.step = step
        self.completed = completed
        self.cause = cause
        super().__init__(f"migration step '{step}' failed: {cause}")
