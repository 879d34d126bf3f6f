# changed_pkgs/services/manifest_differ.py
from typing import FrozenSet, Set

from changed_pkgs.models.manifest import ManifestSnapshot


def diff_modules(old: ManifestSnapshot, new: ManifestSnapshot) -> FrozenSet[str]:
    """
    Third-party modules whose effective version differs between two go.mod snapshots.

    A module counts as changed when it is:
      - required in both snapshots with a different version, or
      - the source of a `replace` that was added, retargeted, or removed.

    Modules only required by the old snapshot are ignored, nothing can import
    them any more. Modules only required by the new snapshot are ignored too:
    whatever imports them was edited to do so and is already directly changed.
    """
    return frozenset(diff_requirements(old, new) | diff_replacements(old, new))


def diff_requirements(old: ManifestSnapshot, new: ManifestSnapshot) -> Set[str]:
    old_versions = {req.path: req.version for req in old.requirements}
    changed = set()
    for req in new.requirements:
        old_version = old_versions.get(req.path)
        if old_version is not None and old_version != req.version:
            changed.add(req.path)
    return changed


def diff_replacements(old: ManifestSnapshot, new: ManifestSnapshot) -> Set[str]:
    old_targets = {rep.source_path: rep.target for rep in old.replacements}
    changed = set()

    for rep in new.replacements:
        if rep.source_path not in old_targets:
            # added
            changed.add(rep.source_path)
            continue
        if old_targets.pop(rep.source_path) != rep.target:
            changed.add(rep.source_path)

    # whatever is left was replaced before but isn't any more
    changed.update(old_targets)
    return changed
