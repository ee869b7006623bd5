import hashlib
import logging
import os
import pathlib
import shlex
import shutil
import subprocess
from multiprocessing.pool import ThreadPool
from typing import Callable, Iterable, Protocol, TypeVar

import mmh3

logger = logging.getLogger(__name__)

T = TypeVar('T')

MURMUR3 = 'murmur3'

DEFAULT_DIGEST_ALGORITHM = 'md5'


class DigestToolUnavailable(RuntimeError):
    """The hashing mechanism itself cannot be used, as opposed to a single unreadable file."""


def compute_digest_for_path(path: pathlib.Path, algorithm: str | Callable) -> str:
    with open(path, "rb") as f:
        # noinspection PyTypeChecker
        return hashlib.file_digest(f, algorithm).digest().hex()


def digest_width(algorithm: str) -> int:
    """Number of hex characters produced by a digest algorithm.

    Raises:
        DigestToolUnavailable: If the algorithm is not supported
    """
    if algorithm == MURMUR3:
        return 32

    if algorithm.startswith('shake_'):
        raise DigestToolUnavailable(f"Variable-length digest algorithm is not supported: {algorithm}")

    try:
        return hashlib.new(algorithm).digest_size * 2
    except ValueError as e:
        raise DigestToolUnavailable(f"Unsupported digest algorithm: {algorithm}") from e


class Digester(Protocol):
    name: str
    width: int

    def __call__(self, path: pathlib.Path) -> str: ...


class HashDigester:
    """Computes digests in process with hashlib, or mmh3 for ``murmur3``."""

    def __init__(self, algorithm: str = DEFAULT_DIGEST_ALGORITHM):
        self.width = digest_width(algorithm)
        self.name = algorithm
        if algorithm == MURMUR3:
            self._algorithm = mmh3.mmh3_x64_128
        else:
            self._algorithm = algorithm

    def __call__(self, path: pathlib.Path) -> str:
        return compute_digest_for_path(path, self._algorithm)


class CommandDigester:
    """Computes digests with an external ``*sum`` style utility such as ``md5sum``.

    The utility is invoked once per file with the file path as its last argument.
    The digest is the first field of its output, so the output format of
    coreutils and busybox checksum tools is accepted.

    The command is run once on the null device when the digester is created.
    A command that fails there (bad options, wrong digest width) cannot digest
    anything and raises DigestToolUnavailable instead of failing on every file.
    """

    def __init__(self, command: str = 'md5sum', width: int = 32):
        self._args = shlex.split(command)
        if not self._args:
            raise DigestToolUnavailable("Empty digest command")

        executable = shutil.which(self._args[0])
        if executable is None:
            raise DigestToolUnavailable(f"Digest command not found: {self._args[0]}")

        self._args[0] = executable
        self.name = command
        self.width = width

        try:
            self(pathlib.Path(os.devnull))
        except DigestToolUnavailable:
            raise
        except OSError as e:
            raise DigestToolUnavailable(f"Digest command {command!r} is not usable: {e}") from e

    def __call__(self, path: pathlib.Path) -> str:
        try:
            result = subprocess.run([*self._args, os.fspath(path)], capture_output=True)
        except OSError as e:
            raise DigestToolUnavailable(f"Unable to run digest command {self.name!r}: {e}") from e

        if result.returncode != 0:
            message = result.stderr.decode(errors='replace').strip()
            raise OSError(f"{self.name} failed for {path}: {message}")

        fields = result.stdout.split(maxsplit=1)
        if not fields:
            raise OSError(f"{self.name} produced no output for {path}")

        # coreutils prefixes the line with a backslash when the file name needs escaping
        digest = fields[0].decode('ascii', errors='replace').lstrip('\\').lower()
        if len(digest) != self.width:
            raise DigestToolUnavailable(
                f"{self.name} produced a digest of {len(digest)} characters, expected {self.width}")

        return digest


class Processor:
    """Fixed-size worker pool shared by the classification lanes."""

    def __init__(self, concurrency: int | None = None):
        if concurrency is None:
            concurrency = os.cpu_count() or 1

        if concurrency < 0:
            raise ValueError(f"Concurrency must not be negative: {concurrency}")

        self._concurrency = max(concurrency, 1)
        self._pool: ThreadPool | None = None
        if self._concurrency > 1:
            self._pool = ThreadPool(self._concurrency)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._pool is not None:
            self._pool.close()
            self._pool.join()
            self._pool = None

    @property
    def concurrency(self):
        return self._concurrency

    def map(self, func: Callable[[int], T], worker_ids: Iterable[int]) -> list[T]:
        """Run func once per worker id and wait for all of them.

        With a concurrency of one the calls run in order on the calling thread.
        The first exception raised by any call is re-raised once every call has ended.
        """
        worker_ids = list(worker_ids)
        if self._pool is None:
            return [func(worker_id) for worker_id in worker_ids]

        logger.debug(f"Starting {len(worker_ids)} workers")
        return self._pool.map(func, worker_ids, chunksize=1)
