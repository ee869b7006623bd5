"""Manifest records and their decomposition into lookup sets.

A manifest is the text produced by ``md5sum``-style utilities: one record per
line, a fixed-width hex digest, a two-character separator and a path. Records
describe files that have already been processed ("burnt").
"""
import glob
import logging
from pathlib import Path
from typing import Iterable, Iterator, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_DIGEST_WIDTH = 32
DEFAULT_COMPRESSED_SUFFIX = '.xz'

# Width of the separator between digest and path ("  " or " *" for binary mode)
_SEPARATOR_WIDTH = 2

_WILDCARDS = '*?['


class ManifestRecord(NamedTuple):
    """A single ``digest  path`` entry of a manifest."""
    digest: str
    path: str


_ESCAPES = {'\\': '\\', 'n': '\n', 'r': '\r'}


def _unescape_path(path: str) -> str:
    parts = []
    i = 0
    while i < len(path):
        c = path[i]
        if c == '\\' and i + 1 < len(path) and path[i + 1] in _ESCAPES:
            parts.append(_ESCAPES[path[i + 1]])
            i += 2
        else:
            parts.append(c)
            i += 1
    return ''.join(parts)


def parse_manifest_line(line: str, digest_width: int = DEFAULT_DIGEST_WIDTH) -> ManifestRecord | None:
    """Parse one manifest line.

    Args:
        line: Raw line, with or without its line terminator
        digest_width: Number of leading characters holding the digest

    Returns:
        The parsed record, or None for blank lines

    Raises:
        ValueError: If the line is too short to hold a digest, a separator and a path
    """
    line = line.rstrip('\r\n')
    if not line:
        return None

    # coreutils marks lines whose path contains a backslash or newline
    escaped = line.startswith('\\')
    if escaped:
        line = line[1:]

    if len(line) <= digest_width + _SEPARATOR_WIDTH:
        raise ValueError(f"malformed manifest line: {line!r}")

    digest = line[:digest_width].lower()
    path = line[digest_width + _SEPARATOR_WIDTH:]
    if escaped:
        path = _unescape_path(path)
    if path.startswith('./'):
        path = path[2:]

    return ManifestRecord(digest, path)


def read_manifest(path: Path, digest_width: int = DEFAULT_DIGEST_WIDTH) -> Iterator[ManifestRecord]:
    """Yield the records of a manifest file, skipping blank and malformed lines."""
    with open(path, 'r', encoding='utf-8', errors='surrogateescape', newline='') as f:
        for line_number, line in enumerate(f, 1):
            try:
                record = parse_manifest_line(line, digest_width)
            except ValueError as e:
                logger.warning(f"{path}:{line_number}: {e}")
                continue

            if record is not None:
                yield record


def expand_manifest_patterns(patterns: Iterable[str]) -> list[Path]:
    """Expand manifest path patterns containing shell wildcards.

    Patterns without wildcards are returned as they are, so that a missing file
    is reported when it is opened. Each file is returned once, in pattern order.

    Raises:
        FileNotFoundError: If a wildcard pattern matches no file
    """
    paths: list[Path] = []
    seen: set[Path] = set()
    for pattern in patterns:
        if any(c in pattern for c in _WILDCARDS):
            matches = sorted(glob.glob(pattern, recursive=True))
            if not matches:
                raise FileNotFoundError(f"No manifest matches pattern: {pattern}")
        else:
            matches = [pattern]

        for match in matches:
            match_path = Path(match)
            if match_path not in seen:
                seen.add(match_path)
                paths.append(match_path)

    return paths


def load_manifests(paths: Iterable[Path], digest_width: int = DEFAULT_DIGEST_WIDTH) -> list[ManifestRecord]:
    """Read and concatenate the records of several manifest files.

    Raises:
        FileNotFoundError: If a manifest file does not exist
        IsADirectoryError: If a manifest path is a directory
    """
    records: list[ManifestRecord] = []
    for path in paths:
        before = len(records)
        records.extend(read_manifest(path, digest_width))
        logger.debug(f"Read {len(records) - before} records from {path}")
    return records


def decompose_manifest(
        records: Iterable[ManifestRecord],
        suffix: str = DEFAULT_COMPRESSED_SUFFIX
) -> tuple[frozenset[str], frozenset[str]]:
    """Split manifest records into the set of known digests and the set of known paths.

    Each recorded path is known in its raw form and in its compressed form, so
    ``a/b.txt`` also makes ``a/b.txt.xz`` known and ``a/b.txt.xz`` also makes
    ``a/b.txt`` known. An empty suffix disables the variants.

    Returns:
        A 2-tuple of (known_digests, known_paths)
    """
    digests: set[str] = set()
    paths: set[str] = set()

    for record in records:
        digests.add(record.digest)
        paths.add(record.path)
        if suffix:
            paths.add(record.path + suffix)
            if len(record.path) >= len(suffix) and record.path.endswith(suffix):
                paths.add(record.path[:-len(suffix)])

    return frozenset(digests), frozenset(paths)
