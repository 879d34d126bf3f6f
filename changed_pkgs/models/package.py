# changed_pkgs/models/package.py
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


@dataclass(frozen=True)
class ExternalModule:
    """A third-party module backing one or more packages"""
    path: str
    version: str = ""


@dataclass(frozen=True)
class Package:
    """
    A Go package as reported by the package graph provider.

    `imports` maps import path -> imported Package and may reference packages
    outside the local graph (standard library, third-party). `module` is None
    for packages of the main module and for the standard library.
    """
    path: str
    files: FrozenSet[str] = frozenset()
    imports: Dict[str, "Package"] = field(default_factory=dict, compare=False, hash=False, repr=False)
    module: Optional[ExternalModule] = None
