# changed_pkgs/errors.py
from contextlib import contextmanager


class ChangedPackagesError(Exception):
    """Base class for failures that abort a run."""


class RepositoryError(ChangedPackagesError):
    """The git repository could not be opened or queried."""


class InvalidRevisionError(RepositoryError):
    def __init__(self, ref: str, reason: str = ""):
        self.ref = ref
        message = f"invalid revision {ref!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class FileNotAtRevisionError(RepositoryError):
    def __init__(self, path: str, ref: str):
        self.path = path
        self.ref = ref
        super().__init__(f"{path} does not exist at {ref}")


class ManifestParseError(ChangedPackagesError):
    def __init__(self, path: str, line: int, message: str):
        self.path = path
        self.line = line
        super().__init__(f"{path}:{line}: {message}")


class PackageLoadError(ChangedPackagesError):
    """Listing local packages failed, or a package reported errors."""


class OperationInterrupted(Exception):
    """A blocking call was cancelled by the user (SIGINT).

    Not a ChangedPackagesError: the CLI maps it to its own exit code.
    """

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"interrupted while {action}")


@contextmanager
def interruptible(action: str):
    """Turn a KeyboardInterrupt raised inside the block into OperationInterrupted."""
    try:
        yield
    except KeyboardInterrupt:
        raise OperationInterrupted(action) from None
