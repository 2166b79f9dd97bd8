class ConfigError(Exception):
    pass


class StorageError(Exception):
    pass


class SyncError(Exception):
    """A failure reported by the session synchronizer to its caller."""

    kind = "sync"
    recoverable = False

    def __init__(self, message: str = "", *, cause: BaseException | None = None):
        super().__init__(message)
        self.__cause__ = cause


class CreationError(SyncError):
    kind = "creation"
    recoverable = True


class CompletionError(SyncError):
    kind = "completion"
    recoverable = True


class LoadError(SyncError):
    kind = "load"


class ReplayError(SyncError):
    kind = "replay"
    recoverable = True

    def __init__(self, message: str, failed_turns: list[int] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.failed_turns = list(failed_turns or [])


class PersistenceError(SyncError):
    kind = "persistence"
    recoverable = True
