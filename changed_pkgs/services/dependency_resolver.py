# changed_pkgs/services/dependency_resolver.py
import logging
import os
from typing import AbstractSet, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

import networkx as nx

from changed_pkgs.models.change_set import ChangeSet
from changed_pkgs.models.impact_node import ImpactNode, ImpactReason
from changed_pkgs.models.package import Package

logger = logging.getLogger(__name__)


class PackageGraph:
    """
    The local packages of a module, in the order the graph provider listed them.

    Edges point from a package to the local packages it imports. Imports of
    packages outside the graph (stdlib, third-party) stay reachable through
    `Package.imports` but are not nodes here.
    """

    def __init__(self, packages: Iterable[Package]):
        self.packages: Tuple[Package, ...] = tuple(packages)
        self.by_path: Dict[str, Package] = {}
        self.graph = nx.DiGraph()

        for pkg in self.packages:
            if pkg.path in self.by_path:
                raise ValueError(f"package {pkg.path} listed twice")
            self.by_path[pkg.path] = pkg
            self.graph.add_node(pkg.path)

        for pkg in self.packages:
            for import_path in pkg.imports:
                if import_path in self.by_path:
                    self.graph.add_edge(pkg.path, import_path)

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, pkg_path) -> bool:
        return pkg_path in self.by_path

    def get(self, pkg_path: str) -> Optional[Package]:
        return self.by_path.get(pkg_path)

    def is_leaves_first(self) -> bool:
        """True when every package comes after all of the local packages it imports."""
        position = {pkg.path: i for i, pkg in enumerate(self.packages)}
        return all(position[dep] < position[pkg] for pkg, dep in self.graph.edges())


class FileOwnerIndex:
    """Maps file paths to the package that owns them."""

    def __init__(self, graph: PackageGraph, root_dir: str = ""):
        self.root_dir = root_dir
        self.owners: Dict[str, Package] = {}
        for pkg in graph:
            for file_path in pkg.files:
                # a file shouldn't belong to more than one package, if it does the first one wins
                self.owners.setdefault(self._key(file_path), pkg)
        logger.debug(f"Indexed {len(self.owners)} files across {len(graph)} packages")

    def _key(self, file_path: str) -> str:
        # go list reports symlink-free directories, so both sides are resolved
        return os.path.realpath(os.path.join(self.root_dir, file_path))

    def owner_of(self, file_path: str) -> Optional[Package]:
        return self.owners.get(self._key(file_path))


def propagate(
    graph: PackageGraph,
    direct_changed: AbstractSet[str],
    changed_modules: AbstractSet[str],
    reasons: Optional[Mapping[str, ImpactNode]] = None,
) -> ChangeSet:
    """
    Mark every package that is directly changed, is backed by a changed
    module, or imports a changed package or a package from a changed module.

    With a leaves-first graph a single pass reaches the closure. Otherwise
    passes repeat until one of them marks nothing new.
    """
    changed = set(direct_changed)
    explained: Dict[str, ImpactNode] = dict(reasons or {})

    if graph.is_leaves_first():
        _propagation_pass(graph, changed, changed_modules, explained)
    else:
        logger.warning("Package graph is not in dependency order, iterating to a fixed point")
        passes = 1
        while _propagation_pass(graph, changed, changed_modules, explained):
            passes += 1
        logger.debug(f"Reached fixed point after {passes} passes")

    return ChangeSet(
        packages=frozenset(changed),
        modules=frozenset(changed_modules),
        reasons=explained,
    )


def _propagation_pass(
    graph: PackageGraph,
    changed: Set[str],
    changed_modules: AbstractSet[str],
    explained: Dict[str, ImpactNode],
) -> List[str]:
    """One scan over the graph; adds to `changed` in place and returns what was added."""
    added = []
    for pkg in graph:
        if pkg.path in changed:
            continue
        reason = _change_reason(pkg, changed, changed_modules)
        if reason is None:
            continue
        logger.debug(f"Package {pkg.path} changed because of {reason.describe()}")
        changed.add(pkg.path)
        explained[pkg.path] = reason
        added.append(pkg.path)
    return added


def _change_reason(
    pkg: Package,
    changed: AbstractSet[str],
    changed_modules: AbstractSet[str],
) -> Optional[ImpactNode]:
    if pkg.module is not None and pkg.module.path in changed_modules:
        return ImpactNode(pkg.path, ImpactReason.MODULE, pkg.module.path)

    for import_path, imported in pkg.imports.items():
        if import_path in changed:
            return ImpactNode(pkg.path, ImpactReason.PACKAGE, import_path)
        if imported.module is not None and imported.module.path in changed_modules:
            return ImpactNode(pkg.path, ImpactReason.MODULE, imported.module.path)
    return None
