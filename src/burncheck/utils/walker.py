import functools
import logging
import os
import stat
from pathlib import Path, PurePosixPath
from typing import Generator, Iterator, NamedTuple

logger = logging.getLogger(__name__)

HIDDEN_MARKER = '.'


class FileContext:
    """Context object for a file or directory during traversal.

    To get the full path of a file, join the scan root with relative_path.
    The _path attribute is only used for lstat() when stat info is not pre-computed.
    """
    def __init__(self, parent, name: str | None, path: Path | None = None, st: os.stat_result | None = None):
        self._parent: FileContext | None = parent
        self._name: str | None = name
        self._stat: os.stat_result | None = st
        self._path: Path | None = path

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def parent(self) -> 'FileContext':
        if self._parent is None:
            raise LookupError("no parent")

        return self._parent

    @property
    def stat(self) -> os.stat_result:
        if self._stat is None:
            if self._path is None:
                raise LookupError("stat not available and path not provided")
            self._stat = self._path.stat(follow_symlinks=False)
        return self._stat

    @functools.cached_property
    def relative_path(self) -> PurePosixPath | None:
        """Path relative to the root context, built from the parent chain and cached."""
        if self._name is None:
            return None

        if self._parent is None:
            return PurePosixPath(self._name)

        parent_path = self._parent.relative_path
        if parent_path is None:
            return PurePosixPath(self._name)

        return parent_path / self._name

    def is_hidden(self) -> bool:
        return self._name is not None and self._name.startswith(HIDDEN_MARKER)

    def is_file(self):
        return stat.S_ISREG(self.stat.st_mode)

    def is_dir(self):
        return stat.S_ISDIR(self.stat.st_mode)


def walk(path: Path, parent: FileContext) -> Generator[tuple[Path, FileContext], bool | None, None]:
    """Recursively traverse a directory.

    Sending False back after an entry is yielded skips descending into it.
    Symlinks are reported but never followed.
    """
    child: Path
    for child in path.iterdir():
        context = FileContext(parent, child.name, path=child)
        descend = yield child, context

        if descend is False:
            continue

        if context.is_dir():
            yield from walk(child, context)


class WalkPolicy(NamedTuple):
    """Policy controlling filesystem traversal behavior.

    Attributes:
        include_hidden: Whether entries whose name starts with '.' are visited
    """
    include_hidden: bool = False


def walk_with_policy(path: Path, policy: WalkPolicy) -> Iterator[tuple[Path, FileContext]]:
    """Walk a filesystem tree, pruning the entries the policy rejects.

    Uses the generator .send() protocol of walk() to prevent descending into
    pruned directories.

    Yields:
        Tuples of (absolute_path, file_context) for each entry kept by the policy
    """
    gen = walk(path, FileContext(None, None, path))
    pending = None

    try:
        while True:
            file_path, file_context = gen.send(pending)
            pending = None

            if not policy.include_hidden and file_context.is_hidden():
                pending = False
                continue

            yield file_path, file_context
    except StopIteration:
        pass


def scan(root: Path, include_hidden: bool = False) -> list[str]:
    """List the regular files under root as POSIX paths relative to root.

    The order is the traversal order of the filesystem, which is stable as long
    as the tree does not change. Hidden entries and everything below hidden
    directories are left out unless include_hidden is set.

    Raises:
        FileNotFoundError: If root does not exist
        NotADirectoryError: If root is not a directory
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Root folder does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Root folder is not a directory: {root}")

    candidates = []
    for _, context in walk_with_policy(root, WalkPolicy(include_hidden=include_hidden)):
        if context.is_file():
            candidates.append(str(context.relative_path))

    logger.debug(f"Scanned {len(candidates)} files under {root}")
    return candidates
