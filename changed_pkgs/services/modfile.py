# changed_pkgs/services/modfile.py
"""
go.mod reader.

Only `module`, `require` and `replace` feed the snapshot. The remaining
directives are checked for shape and otherwise ignored.
"""
import json
import re
from typing import Dict, List, Optional, Tuple

from changed_pkgs.errors import ManifestParseError
from changed_pkgs.models.manifest import ManifestSnapshot, Replacement, Requirement

_TOKEN_RE = re.compile(
    r'"(?:[^"\\]|\\.)*"'          # interpreted string
    r'|`[^`]*`'                    # raw string
    r'|//.*'                       # comment, runs to end of line
    r'|=>'
    r'|[()]'
    r'|(?:[^\s"`=/()]|/(?!/))+'    # bare word, may contain single slashes
    r'|\S'
)

# verb -> (min args, max args); None means unbounded
_DIRECTIVES = {
    "module": (1, 1),
    "go": (1, 1),
    "toolchain": (1, 1),
    "godebug": (1, None),
    "require": (2, 2),
    "replace": (3, 5),
    "exclude": (2, 2),
    "retract": (1, None),
    "tool": (1, 1),
    "ignore": (1, 1),
}
_NO_BLOCK = {"module", "go", "toolchain"}


def parse(data: bytes, path: str = "go.mod") -> ManifestSnapshot:
    """Parse the raw bytes of a go.mod file. Raises ManifestParseError on malformed input."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ManifestParseError(path, 1, f"not valid UTF-8: {e}") from e

    builder = _SnapshotBuilder(path)
    block_verb = None
    block_line = 0

    for lineno, line in enumerate(text.splitlines(), start=1):
        tokens, comment = _tokenize(line, path, lineno)
        if not tokens:
            continue

        if block_verb is not None:
            if tokens == [")"]:
                block_verb = None
                continue
            builder.add(block_verb, tokens, comment, lineno)
            continue

        verb, args = tokens[0], tokens[1:]
        if verb not in _DIRECTIVES:
            raise ManifestParseError(path, lineno, f"unknown directive: {verb}")
        if args == ["("]:
            if verb in _NO_BLOCK:
                raise ManifestParseError(path, lineno, f"{verb} does not accept a block")
            block_verb, block_line = verb, lineno
            continue
        builder.add(verb, args, comment, lineno)

    if block_verb is not None:
        raise ManifestParseError(path, block_line, f"unterminated {block_verb} block")

    return builder.snapshot()


def _tokenize(line: str, path: str, lineno: int) -> Tuple[List[str], str]:
    tokens = []
    comment = ""
    for match in _TOKEN_RE.finditer(line):
        token = match.group()
        if token.startswith("//"):
            comment = token[2:].strip()
            break
        if token in ('"', "`"):
            raise ManifestParseError(path, lineno, "unterminated quoted string")
        tokens.append(token)
    return tokens, comment


def _unquote(token: str, path: str, lineno: int) -> str:
    if token.startswith('"'):
        try:
            return json.loads(token)
        except ValueError as e:
            raise ManifestParseError(path, lineno, f"invalid quoted string {token}") from e
    if token.startswith("`"):
        return token[1:-1]
    return token


def _is_local_path(target: str) -> bool:
    return target.startswith(("./", "../", "/", ".\\", "..\\")) or bool(re.match(r"^[A-Za-z]:[\\/]", target))


def _is_indirect(comment: str) -> bool:
    return comment == "indirect" or comment.startswith("indirect;")


class _SnapshotBuilder:
    def __init__(self, path: str):
        self.path = path
        self.module_path: Optional[str] = None
        self.requirements: Dict[str, Requirement] = {}
        self.replacements: Dict[str, Replacement] = {}

    def error(self, lineno: int, message: str) -> ManifestParseError:
        return ManifestParseError(self.path, lineno, message)

    def add(self, verb: str, args: List[str], comment: str, lineno: int):
        min_args, max_args = _DIRECTIVES[verb]
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            raise self.error(lineno, f"malformed {verb} directive")

        if verb == "module":
            if self.module_path is not None:
                raise self.error(lineno, "repeated module statement")
            self.module_path = _unquote(args[0], self.path, lineno)
        elif verb == "require":
            self._add_require(args, comment, lineno)
        elif verb == "replace":
            self._add_replace(args, lineno)

    def _add_require(self, args: List[str], comment: str, lineno: int):
        mod_path, version = (_unquote(arg, self.path, lineno) for arg in args)
        if not version.startswith("v"):
            raise self.error(lineno, f"invalid version {version!r} for {mod_path}")
        if mod_path in self.requirements:
            raise self.error(lineno, f"repeated requirement of {mod_path}")
        self.requirements[mod_path] = Requirement(mod_path, version, indirect=_is_indirect(comment))

    def _add_replace(self, args: List[str], lineno: int):
        if "=>" not in args:
            raise self.error(lineno, "replace directive is missing =>")
        arrow = args.index("=>")
        left = [_unquote(arg, self.path, lineno) for arg in args[:arrow]]
        right = [_unquote(arg, self.path, lineno) for arg in args[arrow + 1:]]
        if len(left) not in (1, 2) or len(right) not in (1, 2):
            raise self.error(lineno, "malformed replace directive")

        source_path = left[0]
        source_version = left[1] if len(left) == 2 else ""
        target_path = right[0]
        target_version = right[1] if len(right) == 2 else ""
        if not target_version and not _is_local_path(target_path):
            raise self.error(
                lineno,
                f"replacement module without version must be a directory path: {target_path}",
            )
        if source_path in self.replacements:
            raise self.error(lineno, f"repeated replacement of {source_path}")

        self.replacements[source_path] = Replacement(
            source_path=source_path,
            target_path=target_path,
            target_version=target_version,
            source_version=source_version,
        )

    def snapshot(self) -> ManifestSnapshot:
        return ManifestSnapshot(
            module_path=self.module_path,
            requirements=frozenset(self.requirements.values()),
            replacements=frozenset(self.replacements.values()),
        )
