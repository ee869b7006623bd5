from .inventory import Inventory
from .ignore import IgnoreMatcher
from .manifest import ManifestRecord, decompose_manifest
from .commands.classify import Classification, ClassificationSummary, Classifier, ClassifyArgs, dispatch, lanes
from .utils.processor import Processor, HashDigester, CommandDigester, DigestToolUnavailable
from .utils.sink import ResultSink
from .utils.walker import scan
