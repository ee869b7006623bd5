"""Shared test utilities for burncheck tests."""
import hashlib
from pathlib import Path


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def write_tree(root: Path, files: dict[str, bytes]):
    """Create files below root from a mapping of relative path to content."""
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def write_manifest(path: Path, entries: list[tuple[str, str]]):
    """Write an md5sum style manifest from (digest, path) pairs."""
    path.write_text(''.join(f"{digest}  {file_path}\n" for digest, file_path in entries))


class StaticDigester:
    """Digester returning preset digests by file name, for digests that can't come from real content."""

    name = 'static'
    width = 32

    def __init__(self, digests: dict[str, str]):
        self._digests = digests
        self.calls: list[Path] = []

    def __call__(self, path: Path) -> str:
        self.calls.append(path)
        if not path.exists():
            raise FileNotFoundError(f"No such file: {path}")
        return self._digests[path.name]
