"""
Error hierarchy tests
"""

import pytest

from changed_pkgs.errors import (
    ChangedPackagesError,
    FileNotAtRevisionError,
    InvalidRevisionError,
    ManifestParseError,
    OperationInterrupted,
    PackageLoadError,
    RepositoryError,
    interruptible,
)


class TestHierarchy:
    """Which errors abort a run, and which mean cancellation"""

    @pytest.mark.parametrize(
        "error",
        [
            InvalidRevisionError("HEAD~99"),
            FileNotAtRevisionError("go.mod", "v1"),
            ManifestParseError("go.mod", 1, "bad"),
            PackageLoadError("bad"),
        ],
    )
    def test_input_errors(self, error):
        assert isinstance(error, ChangedPackagesError)

    def test_revision_errors_are_repository_errors(self):
        assert issubclass(InvalidRevisionError, RepositoryError)
        assert issubclass(FileNotAtRevisionError, RepositoryError)

    def test_interruption_is_separate(self):
        assert not issubclass(OperationInterrupted, ChangedPackagesError)

    def test_messages(self):
        assert str(InvalidRevisionError("x", "bad name")) == "invalid revision 'x': bad name"
        assert str(FileNotAtRevisionError("a/go.mod", "v1")) == "a/go.mod does not exist at v1"


class TestInterruptible:
    """KeyboardInterrupt conversion"""

    def test_converts_keyboard_interrupt(self):
        with pytest.raises(OperationInterrupted) as exc_info:
            with interruptible("running git diff"):
                raise KeyboardInterrupt
        assert exc_info.value.action == "running git diff"
        assert str(exc_info.value) == "interrupted while running git diff"

    def test_other_errors_untouched(self):
        with pytest.raises(PackageLoadError):
            with interruptible("loading"):
                raise PackageLoadError("bad")
