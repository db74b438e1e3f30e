class WorkloadServiceError(Exception):
    """Base class for errors raised by the workload service."""


class InvalidInputError(WorkloadServiceError, ValueError):
    """A workload was given a parameter it cannot accept."""


class NetworkError(WorkloadServiceError):
    """The outbound call failed, timed out or returned a non-2xx status."""


class LogWriteError(WorkloadServiceError):
    """The persistent log sink could not be written."""

    def __init__(self, path: str, cause: BaseException | None) -> None:
        super().__init__(f"cannot write to {path}: {cause!r}")
        self.path = path
        self.cause = cause


class BindError(WorkloadServiceError):
    """The listening socket could not be bound."""
