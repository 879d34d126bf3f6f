import logging
import os
from typing import List

from git import Repo
from git.exc import BadName, BadObject, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from changed_pkgs.errors import FileNotAtRevisionError, InvalidRevisionError, RepositoryError, interruptible

logger = logging.getLogger(__name__)

class RepoManager:
    """Read-only access to two revisions of a git repository."""

    def __init__(self, repo_dir: str):
        # some bits need an absolute path, some don't. Always use one
        self.repo_dir = os.path.abspath(repo_dir)
        try:
            self.repo = Repo(self.repo_dir, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryError(f"{self.repo_dir} is not inside a git repository") from e

    @property
    def root_dir(self) -> str:
        """Top of the working tree, the directory changed file paths are relative to."""
        return self.repo.working_tree_dir or self.repo_dir

    def _commit(self, ref: str):
        try:
            return self.repo.commit(ref)
        except (BadName, BadObject, ValueError) as e:
            raise InvalidRevisionError(ref, str(e)) from e

    def list_changed_files(self, from_ref: str, to_ref: str) -> List[str]:
        """
        Repository-relative paths of the files that differ between two revisions.

        A moved file shows up under both its old and its new path.
        """
        with interruptible(f"listing files changed between {from_ref} and {to_ref}"):
            from_commit = self._commit(from_ref)
            to_commit = self._commit(to_ref)
            try:
                out = self.repo.git.diff("--name-only", "--no-renames", "-z", from_commit.hexsha, to_commit.hexsha)
            except GitCommandError as e:
                raise RepositoryError(f"listing changed files: {e}") from e

        # there's always a trailing NUL, and no output at all when nothing changed
        changed = [path for path in out.split("\x00") if path]
        logger.debug(f"{len(changed)} files differ between {from_commit.hexsha[:7]} and {to_commit.hexsha[:7]}")
        return changed

    def read_file_at(self, ref: str, path: str) -> bytes:
        """Raw content of `path` (repository-relative) at `ref`."""
        with interruptible(f"reading {path} at {ref}"):
            commit = self._commit(ref)
            try:
                blob = commit.tree / path.replace(os.sep, "/")
            except KeyError:
                raise FileNotAtRevisionError(path, ref) from None
            if blob.type != "blob":
                raise FileNotAtRevisionError(path, ref)
            return blob.data_stream.read()
