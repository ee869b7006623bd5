import logging
import os
from pathlib import Path
from typing import Iterable

from .commands.classify import ClassificationSummary, Classifier, ClassifyArgs, dispatch
from .ignore import IgnoreMatcher, load_ignore_rules
from .manifest import DEFAULT_COMPRESSED_SUFFIX, decompose_manifest, load_manifests
from .utils.processor import Digester, HashDigester, Processor
from .utils.sink import ResultSink
from .utils.walker import scan

logger = logging.getLogger(__name__)


class Inventory:
    """A source tree checked against the manifests of files processed before.

    All inputs are loaded when the inventory is created, so that a missing root,
    manifest or ignore file fails the run before any file is scanned. The lookup
    sets built from them are never modified afterwards and are shared read-only
    by the classification lanes.
    """

    def __init__(
            self,
            processor: Processor,
            root: str | os.PathLike,
            manifest_paths: Iterable[str | os.PathLike],
            ignore_file: str | os.PathLike | None = None,
            *,
            include_hidden: bool = False,
            suffix: str = DEFAULT_COMPRESSED_SUFFIX,
            digester: Digester | None = None):
        """
        Args:
            processor: Worker pool running the classification lanes
            root: Directory whose files are classified
            manifest_paths: Manifest files listing already processed files
            ignore_file: Optional file of path prefixes to leave out
            include_hidden: Also scan entries whose name starts with '.'
            suffix: Compressed-form suffix making path variants known
            digester: Content digester, MD5 computed in process by default

        Raises:
            FileNotFoundError: Root, a manifest or the ignore file does not exist
            NotADirectoryError: Root is not a directory
        """
        root_path = Path(root)
        if not root_path.exists():
            raise FileNotFoundError(f"Root folder does not exist: {root_path}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Root folder is not a directory: {root_path}")

        self._processor = processor
        self._root = root_path
        self._include_hidden = include_hidden
        self._digester = digester if digester is not None else HashDigester()

        records = load_manifests([Path(p) for p in manifest_paths], self._digester.width)
        self._known_digests, self._known_paths = decompose_manifest(records, suffix)
        logger.info(f"Loaded {len(records)} manifest records "
                    f"({len(self._known_digests)} digests, {len(self._known_paths)} paths)")

        if ignore_file is not None:
            self._ignore = load_ignore_rules(Path(ignore_file))
        else:
            self._ignore = IgnoreMatcher()
        logger.info(f"Loaded {len(self._ignore)} ignore rules")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def known_digests(self) -> frozenset[str]:
        return self._known_digests

    @property
    def known_paths(self) -> frozenset[str]:
        return self._known_paths

    @property
    def ignore(self) -> IgnoreMatcher:
        return self._ignore

    def scan(self) -> list[str]:
        """List the candidate files under the root, relative to it."""
        candidates = scan(self._root, self._include_hidden)
        logger.info(f"Found {len(candidates)} files")
        return candidates

    def classify(self, sink: ResultSink) -> ClassificationSummary:
        """Scan the root and report every file not yet processed to sink.

        Raises:
            DigestToolUnavailable: The digester cannot be used at all
        """
        candidates = self.scan()
        classifier = Classifier(
            ClassifyArgs(self._known_digests, self._known_paths, self._ignore, self._root, self._digester),
            sink)

        logger.info(f"Processing files with {self._processor.concurrency} workers")
        return dispatch(candidates, classifier, self._processor)
