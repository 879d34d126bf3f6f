# changed_pkgs/models/change_set.py
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator

from changed_pkgs.models.impact_node import ImpactNode


@dataclass(frozen=True)
class ChangeSet:
    """Impacted packages, the changed modules that fed them, and why each package changed"""
    packages: FrozenSet[str] = frozenset()
    modules: FrozenSet[str] = frozenset()
    reasons: Dict[str, ImpactNode] = field(default_factory=dict, compare=False, hash=False)

    def __iter__(self) -> Iterator[str]:
        return iter(self.packages)

    def __contains__(self, pkg_path) -> bool:
        return pkg_path in self.packages

    def __len__(self) -> int:
        return len(self.packages)
