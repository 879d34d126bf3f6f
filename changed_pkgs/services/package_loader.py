import json
import logging
import os
import subprocess
from typing import Any, Dict, Iterator, List, Optional

from changed_pkgs.errors import PackageLoadError, interruptible
from changed_pkgs.models.package import ExternalModule, Package
from changed_pkgs.services.dependency_resolver import PackageGraph

logger = logging.getLogger(__name__)

# go list fields holding the files a package is built from, relative to its Dir
FILE_FIELDS = (
    "GoFiles",
    "CgoFiles",
    "CFiles",
    "CXXFiles",
    "MFiles",
    "HFiles",
    "FFiles",
    "SFiles",
    "SwigFiles",
    "SwigCXXFiles",
    "SysoFiles",
    "EmbedFiles",
)
TEST_FILE_FIELDS = ("TestGoFiles", "XTestGoFiles")

class GoPackageLoader:
    """Loads the local packages of a Go module, and everything they import, via `go list`"""

    def __init__(self, go_binary: str = "go", build_tags: str = "", include_test_files: bool = False):
        self.go_binary = go_binary
        self.build_tags = build_tags
        self.include_test_files = include_test_files

    def command(self) -> List[str]:
        # -deps lists a package only after all of its dependencies
        cmd = [self.go_binary, "list", "-e", "-deps", "-json"]
        if self.build_tags:
            cmd.append(f"-tags={self.build_tags}")
        cmd.append("./...")
        return cmd

    def load_graph(self, mod_dir: str) -> PackageGraph:
        """
        Load the package graph rooted at `mod_dir`.

        Raises PackageLoadError if any package can't be loaded (e.g. a syntax
        error). Never returns a partial graph.
        """
        mod_dir = os.path.abspath(mod_dir)
        cmd = self.command()

        with interruptible(f"listing packages in {mod_dir}"):
            try:
                # go trusts PWD over the kernel cwd when both name the same directory
                env = {**os.environ, "PWD": mod_dir}
                result = subprocess.run(cmd, cwd=mod_dir, env=env, capture_output=True, text=True)
            except OSError as e:
                raise PackageLoadError(f"failed running `{' '.join(cmd)}`: {e}") from e

        if result.returncode != 0:
            raise PackageLoadError(
                f"failed listing local packages: `{' '.join(cmd)}`: "
                f"exit status {result.returncode}\nstderr: {result.stderr.strip()}"
            )

        graph = graph_from_go_list(result.stdout, include_test_files=self.include_test_files)
        logger.info(f"Loaded {len(graph)} local packages from {mod_dir}")
        return graph


def iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """`go list -json` prints a stream of concatenated objects, not an array."""
    decoder = json.JSONDecoder()
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return
        try:
            obj, pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise PackageLoadError(f"decoding go list output: {e}") from e
        yield obj


def graph_from_go_list(output: str, include_test_files: bool = False) -> PackageGraph:
    """
    Build the package graph from `go list -deps -json` output.

    Only packages matched by the pattern (not `DepOnly`) become graph nodes;
    their dependencies are still attached through `Package.imports`.
    """
    fields = FILE_FIELDS + (TEST_FILE_FIELDS if include_test_files else ())
    by_path: Dict[str, Package] = {}
    local = []

    for record in iter_json_objects(output):
        import_path = record.get("ImportPath", "")
        error = record.get("Error")
        if error:
            # early check, e.g. we can't load a package because of a syntax error in the source
            raise PackageLoadError(f"failed querying package {import_path}: {error.get('Err', error)}")

        directory = record.get("Dir", "")
        files = frozenset(
            os.path.join(directory, name)
            for field in fields
            for name in record.get(field) or ()
        )

        import_map = record.get("ImportMap") or {}
        imports = {}
        for imported in record.get("Imports") or ():
            resolved = import_map.get(imported, imported)
            dep = by_path.get(resolved)
            if dep is not None:
                imports[resolved] = dep

        pkg = Package(
            path=import_path,
            files=files,
            imports=imports,
            module=external_module(record.get("Module")),
        )
        by_path[import_path] = pkg
        if not record.get("DepOnly"):
            local.append(pkg)

    return PackageGraph(local)


def external_module(module: Optional[Dict[str, Any]]) -> Optional[ExternalModule]:
    """The third-party module behind a package, None for the main module and the stdlib"""
    if not module or module.get("Main"):
        return None

    version = module.get("Version", "")
    replace = module.get("Replace")
    if replace:
        # replaced by a directory when there's no version
        version = replace.get("Version") or replace.get("Path", "")
    return ExternalModule(path=module["Path"], version=version)
