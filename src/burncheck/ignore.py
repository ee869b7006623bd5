import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class IgnoreMatcher:
    """Excludes candidate paths starting with any of a set of prefixes.

    Prefixes are compared as plain strings, not path segments: the prefix
    ``ab`` matches ``abc/file`` as well as ``ab/file``.
    """

    def __init__(self, prefixes: Iterable[str] = ()):
        self._prefixes = frozenset(prefixes)

    def __len__(self):
        return len(self._prefixes)

    @property
    def prefixes(self) -> frozenset[str]:
        return self._prefixes

    def is_ignored(self, path: str) -> bool:
        for prefix in self._prefixes:
            if path.startswith(prefix):
                return True
        return False


def load_ignore_rules(path: Path) -> IgnoreMatcher:
    """Build an IgnoreMatcher from a file holding one prefix per line.

    Lines are taken verbatim apart from their terminator; empty lines are skipped.

    Raises:
        FileNotFoundError: If the ignore file does not exist
    """
    prefixes = set()
    with open(path, 'r', encoding='utf-8', errors='surrogateescape', newline='') as f:
        for line in f:
            line = line.rstrip('\r\n')
            if line:
                prefixes.add(line)

    logger.debug(f"Read {len(prefixes)} ignore rules from {path}")
    return IgnoreMatcher(prefixes)
