"""Failure taxonomy for the render pipeline stages."""

from typing import Sequence


class PipelineError(RuntimeError):
    """Base class for every failure a pipeline stage can raise."""


# -----------------------------------------------------
# Asset sync
# -----------------------------------------------------
class AssetSyncError(PipelineError):
    pass


class ListError(AssetSyncError):
    """Listing the job's remote asset prefix failed."""

    def __init__(self, prefix: str, cause: BaseException | None = None):
        self.prefix = prefix
        self.cause = cause
        super().__init__(f"Could not list assets under {prefix!r}: {cause}")


class FetchError(AssetSyncError):
    """A single asset could not be downloaded or written locally."""

    def __init__(self, key: str, cause: BaseException | str | None = None):
        self.key = key
        self.cause = cause
        super().__init__(f"Could not fetch asset {key!r}: {cause}")


# -----------------------------------------------------
# Subprocesses
# -----------------------------------------------------
class CommandError(PipelineError):
    def __init__(self, message: str, command: Sequence[str], log: Sequence[str] = ()):
        self.command = tuple(str(part) for part in command)
        self.log = list(log)
        super().__init__(message)

    @property
    def log_text(self) -> str:
        return "".join(self.log)


class LaunchError(CommandError):
    """The executable is missing or could not be spawned (misconfiguration)."""

    def __init__(self, command: Sequence[str], cause: BaseException):
        self.cause = cause
        super().__init__(
            f"Error starting {command[0]!r}, did you set up the path correctly? ({cause})",
            command,
        )


class NonZeroExit(CommandError):
    def __init__(self, command: Sequence[str], code: int, log: Sequence[str]):
        self.code = code
        super().__init__(f"{command[0]!r} exited with code {code}", command, log)


class CommandTimeout(CommandError):
    def __init__(self, command: Sequence[str], timeout: float, log: Sequence[str]):
        self.timeout = timeout
        super().__init__(f"{command[0]!r} killed after {timeout}s", command, log)


# -----------------------------------------------------
# Publishing
# -----------------------------------------------------
class PublishError(PipelineError):
    pass


class ReadError(PublishError):
    def __init__(self, path, cause: BaseException | None = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not read rendered artifact {str(path)!r}: {cause}")


class PutError(PublishError):
    def __init__(self, key: str, cause: BaseException | None = None):
        self.key = key
        self.cause = cause
        super().__init__(f"Could not upload {key!r}: {cause}")


# -----------------------------------------------------
# Workspace
# -----------------------------------------------------
class DeleteError(PipelineError):
    def __init__(self, path, cause: BaseException | None = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not remove working directory {str(path)!r}: {cause}")


class DuplicateJobError(PipelineError):
    """Another job for the same user video holds its job lock."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Job lock {str(path)!r} is held by another running job")
