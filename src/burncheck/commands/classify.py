import logging
import threading
from collections import Counter
from enum import StrEnum
from pathlib import Path
from typing import Callable, NamedTuple, Sequence

from ..ignore import IgnoreMatcher
from ..utils.processor import Processor
from ..utils.profiling import profile_worker
from ..utils.sink import ResultSink

logger = logging.getLogger(__name__)


class Classification(StrEnum):
    IGNORED = 'ignored'
    KNOWN_BY_PATH = 'known-by-path'
    KNOWN_BY_DIGEST = 'known-by-digest'
    NEW = 'new'
    UNREADABLE = 'unreadable'


class ClassifyArgs(NamedTuple):
    """Read-only state shared by every classification lane."""
    known_digests: frozenset[str]
    known_paths: frozenset[str]
    ignore: IgnoreMatcher
    root: Path
    digester: Callable[[Path], str]  # Raises OSError for unreadable files


class Classifier:
    """Decides whether a candidate file has already been processed.

    Checks are made from the cheapest to the most expensive and stop at the first
    match: ignore prefixes, known paths (including compressed variants), then the
    content digest. Only files that pass all three are reported to the sink.
    """

    def __init__(self, args: ClassifyArgs, sink: ResultSink):
        self._args = args
        self._sink = sink

    def classify(self, path: str) -> Classification:
        if self._args.ignore.is_ignored(path):
            logger.debug(f"Ignored: {path}")
            return Classification.IGNORED

        if path in self._args.known_paths:
            logger.debug(f"Known by path: {path}")
            return Classification.KNOWN_BY_PATH

        try:
            digest = self._args.digester(self._args.root / path)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
            return Classification.UNREADABLE

        if digest in self._args.known_digests:
            logger.debug(f"Known by digest {digest}: {path}")
            return Classification.KNOWN_BY_DIGEST

        self._sink.report(path)
        return Classification.NEW


class ClassificationSummary:
    """Number of candidates per classification."""

    def __init__(self, counts: dict[Classification, int] | None = None):
        self._counts: Counter[Classification] = Counter(counts or {})

    def __getitem__(self, classification: Classification) -> int:
        return self._counts[classification]

    def __eq__(self, other):
        if not isinstance(other, ClassificationSummary):
            return NotImplemented
        return +self._counts == +other._counts

    def __repr__(self):
        counts = ', '.join(f"{c}={self._counts[c]}" for c in Classification)
        return f"ClassificationSummary({counts})"

    @property
    def total(self) -> int:
        return self._counts.total()

    def add(self, classification: Classification):
        self._counts[classification] += 1

    def merge(self, other: 'ClassificationSummary'):
        self._counts.update(other._counts)


def lanes(count: int, workers: int) -> list[range]:
    """Split the index range [0, count) into interleaved lanes, one per worker.

    Lane i holds the indices congruent to i modulo workers, so a cluster of
    expensive neighbouring candidates is spread across all workers.
    """
    workers = max(workers, 1)
    return [range(worker_id, count, workers) for worker_id in range(workers)]


def dispatch(candidates: Sequence[str], classifier: Classifier, processor: Processor) -> ClassificationSummary:
    """Classify every candidate exactly once, one lane per worker of the processor.

    Blocks until all lanes are done. If a lane fails, the remaining lanes stop at
    their next candidate and the failure is re-raised.
    """
    lane_ranges = lanes(len(candidates), processor.concurrency)
    aborted = threading.Event()

    @profile_worker
    def run_lane(worker_id: int) -> ClassificationSummary:
        summary = ClassificationSummary()
        try:
            for index in lane_ranges[worker_id]:
                if aborted.is_set():
                    break
                summary.add(classifier.classify(candidates[index]))
        except BaseException:
            aborted.set()
            raise

        logger.debug(f"Lane {worker_id} classified {summary.total} files")
        return summary

    total = ClassificationSummary()
    for summary in processor.map(run_lane, range(len(lane_ranges))):
        total.merge(summary)

    logger.info(f"Classified {total.total} files: {total}")
    return total
