# changed_pkgs/models/manifest.py
from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Requirement:
    path: str
    version: str
    indirect: bool = field(default=False, compare=False)


@dataclass(frozen=True)
class Replacement:
    """A `replace` directive: source module -> target module.

    `target_version` is empty when the target is a local directory.
    """
    source_path: str
    target_path: str
    target_version: str = ""
    source_version: str = ""

    @property
    def target(self):
        return (self.target_path, self.target_version)


@dataclass(frozen=True)
class ManifestSnapshot:
    """The parsed state of a go.mod at one revision"""
    module_path: Optional[str] = None
    requirements: FrozenSet[Requirement] = frozenset()
    replacements: FrozenSet[Replacement] = frozenset()
