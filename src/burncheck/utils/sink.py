import os
import sys
import threading
from typing import TextIO


class ResultSink:
    """Writes reported paths to a shared stream, one complete line at a time.

    Reports from concurrent workers are serialized by a lock held for the
    duration of one write. Their relative order is not defined.

    Paths are written as the raw file system bytes when the stream exposes a
    binary ``buffer`` (as ``sys.stdout`` does), so names that are not valid in
    the stream's encoding come out exactly as they are on disk.
    """

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()
        self._count = 0

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def report(self, path: str):
        with self._lock:
            buffer = getattr(self._stream, 'buffer', None)
            if buffer is not None:
                self._stream.flush()
                buffer.write(os.fsencode(path) + b'\n')
                buffer.flush()
            else:
                self._stream.write(path + '\n')
                self._stream.flush()
            self._count += 1
