import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Protocol, Tuple

from changed_pkgs.config import Settings, get_settings
from changed_pkgs.models.change_set import ChangeSet
from changed_pkgs.models.impact_node import ImpactNode, ImpactReason
from changed_pkgs.models.manifest import ManifestSnapshot
from changed_pkgs.services import modfile
from changed_pkgs.services.dependency_resolver import FileOwnerIndex, PackageGraph, propagate
from changed_pkgs.services.manifest_differ import diff_modules
from changed_pkgs.services.package_loader import GoPackageLoader
from changed_pkgs.services.repo_manager import RepoManager

logger = logging.getLogger(__name__)


class RevisionProvider(Protocol):
    root_dir: str

    def list_changed_files(self, from_ref: str, to_ref: str) -> list: ...

    def read_file_at(self, ref: str, path: str) -> bytes: ...


class GraphProvider(Protocol):
    def load_graph(self, mod_dir: str) -> PackageGraph: ...


@dataclass(frozen=True)
class DirectChanges:
    """Packages owning a changed file, plus the changed manifests to diff"""
    packages: FrozenSet[str] = frozenset()
    manifest_paths: Tuple[str, ...] = ()
    reasons: Dict[str, ImpactNode] = field(default_factory=dict, compare=False, hash=False)

    @property
    def manifest_changed(self) -> bool:
        return bool(self.manifest_paths)


def detect_direct(
    changed_files: Iterable[str],
    owner_index: FileOwnerIndex,
    manifest_name: str = "go.mod",
) -> DirectChanges:
    """
    Map changed files to the packages that own them.

    Files no package owns are skipped, except that a manifest is always
    reported so it can be diffed.
    """
    packages = set()
    manifests = set()
    reasons: Dict[str, ImpactNode] = {}

    for path in changed_files:
        if posixpath.basename(path) == manifest_name:
            manifests.add(path)

        owner = owner_index.owner_of(path)
        if owner is None:
            continue
        packages.add(owner.path)
        # keep the smallest path so the explanation doesn't depend on input order
        current = reasons.get(owner.path)
        if current is None or path < current.source:
            reasons[owner.path] = ImpactNode(owner.path, ImpactReason.FILE, path)

    for pkg_path, reason in reasons.items():
        logger.debug(f"Package {pkg_path} changed because of file {reason.source}")

    return DirectChanges(
        packages=frozenset(packages),
        manifest_paths=tuple(sorted(manifests)),
        reasons=reasons,
    )


class ChangedPackagesAnalyzer:
    """
    Get packages that are changed between two revisions, where 'changed' means:

      - The package contains a file that was changed between the two revisions
      - The package imports a package from a 3rd party module that was changed
      - The package imports a local package for which either of the above holds

    A 3rd party module is changed when its required version changed, or when a
    `replace` for it was added, updated, or removed.
    """

    def __init__(self, revisions: RevisionProvider, loader: GraphProvider, manifest_name: str = "go.mod"):
        self.revisions = revisions
        self.loader = loader
        self.manifest_name = manifest_name

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, repo_dir: Optional[str] = None):
        settings = settings or get_settings()
        return cls(
            RepoManager(repo_dir or settings.REPO_DIR),
            GoPackageLoader(
                go_binary=settings.GO_BINARY,
                build_tags=settings.GO_BUILD_TAGS,
                include_test_files=settings.INCLUDE_TEST_FILES,
            ),
            manifest_name=settings.MANIFEST_NAME,
        )

    def get_changed_packages(self, mod_dir: str, from_ref: str, to_ref: str) -> ChangeSet:
        graph = self.loader.load_graph(mod_dir)

        changed_files = self.revisions.list_changed_files(from_ref, to_ref)
        logger.info(f"Changed files: {changed_files}")

        owner_index = FileOwnerIndex(graph, self.revisions.root_dir)
        direct = detect_direct(changed_files, owner_index, self.manifest_name)
        changed_modules = self.changed_modules(direct.manifest_paths, from_ref, to_ref)

        change_set = propagate(graph, direct.packages, changed_modules, direct.reasons)
        logger.info(
            f"{len(change_set)} of {len(graph)} packages changed "
            f"({len(direct.packages)} directly, {len(changed_modules)} changed modules)"
        )
        return change_set

    def changed_modules(self, manifest_paths: Iterable[str], from_ref: str, to_ref: str) -> FrozenSet[str]:
        """Diff every changed manifest; module paths are global so the results are merged"""
        changed = set()
        for path in manifest_paths:
            old = self.read_manifest(path, from_ref)
            new = self.read_manifest(path, to_ref)
            modules = diff_modules(old, new)
            logger.info(f"Changed 3rd party modules in {path}: {sorted(modules)}")
            changed.update(modules)
        return frozenset(changed)

    def read_manifest(self, path: str, ref: str) -> ManifestSnapshot:
        data = self.revisions.read_file_at(ref, path)
        return modfile.parse(data, path=f"{path}@{ref}")
