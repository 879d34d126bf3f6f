# changed_pkgs/models/impact_node.py
from dataclasses import dataclass
from enum import Enum

class ImpactReason(str, Enum):
    FILE = "file"          # a file owned by the package changed
    PACKAGE = "package"    # an imported package is impacted
    MODULE = "module"      # the package, or one it imports, is backed by a changed module

@dataclass(frozen=True)
class ImpactNode:
    node_id: str
    reason: ImpactReason
    source: str  # the file, package or module path that triggered the change

    def describe(self) -> str:
        return f"{self.reason.value} {self.source}"
