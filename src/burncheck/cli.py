import argparse
import logging
import os
import sys
import textwrap

from .inventory import Inventory
from .manifest import DEFAULT_COMPRESSED_SUFFIX, expand_manifest_patterns
from .settings import (
    Settings, SETTING_ALGORITHM, SETTING_COMMAND, SETTING_HIDDEN, SETTING_IGNORE_FILE, SETTING_LOG_LEVEL,
    SETTING_LOG_PATH, SETTING_SUFFIX, SETTING_THREADS, tomllib)
from .utils.processor import (
    CommandDigester, DEFAULT_DIGEST_ALGORITHM, DigestToolUnavailable, HashDigester, Processor, digest_width)
from .utils.profiling import profile_main
from .utils.sink import ResultSink

logger = logging.getLogger(__name__)

THREADS_ENV = 'BURNCHECK_THREADS'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

EXIT_ERROR = 1
EXIT_DIGEST_UNAVAILABLE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='burncheck',
        description='List the files of a folder that are not yet recorded in md5sum manifests of previously '
                    'processed ("burnt") files. A file counts as processed when its path, its path with or without '
                    'the compressed suffix, or its content digest appears in a manifest.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              burncheck -f /data -m /archive/disc01.md5
              burncheck -f /data -m '/archive/*.md5' -i ignore.txt -t 8

            New files are printed on standard output, one relative path per line.
            ''').strip())
    parser.add_argument(
        '-f', '--folder',
        required=True,
        metavar='PATH',
        help='Path to the folder containing the files to scan')
    parser.add_argument(
        '-m', '--md5',
        required=True,
        action='append',
        metavar='PATTERN',
        help='Path to an md5sum manifest; shell wildcards select several manifests. May be repeated.')
    parser.add_argument(
        '-i', '--ignore',
        metavar='PATH',
        help='Path to a file listing path prefixes to ignore, one per line')
    parser.add_argument(
        '-t', '--threads',
        type=int,
        metavar='N',
        help=f'Number of worker threads (default: {THREADS_ENV} environment variable, scan.threads setting, or the '
             f'number of CPUs)')
    parser.add_argument(
        '-H', '--hidden',
        action='store_true',
        default=None,
        help='Also scan hidden files and directories (names starting with ".")')
    parser.add_argument(
        '--suffix',
        metavar='SUFFIX',
        help=f'Suffix of compressed copies; a recorded path is known with and without it (default: '
             f'{DEFAULT_COMPRESSED_SUFFIX}, empty string disables)')
    parser.add_argument(
        '--algorithm',
        metavar='NAME',
        help=f'Digest algorithm used by the manifests: any hashlib algorithm or murmur3 (default: '
             f'{DEFAULT_DIGEST_ALGORITHM})')
    parser.add_argument(
        '--digest-command',
        metavar='COMMAND',
        help='Compute digests with an external utility such as md5sum instead of in process')
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Path to a TOML settings file. If not provided, uses BURNCHECK_CONFIG environment variable.')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Print progress information on standard error')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file. If not provided, uses logging.path from the settings file or no log file.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO.')
    return parser


def configure_logging(log_file: str | None, log_level: str | None, verbose: bool) -> bool:
    """Send log records to a file and, when verbose, to standard error.

    Returns:
        True if logging was configured, False if neither destination was requested
    """
    handlers: list[logging.Handler] = []
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))

    if not handlers:
        return False

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, log_level or 'INFO'),
        format=LOG_FORMAT,
        handlers=handlers
    )
    return True


def _setting(parser: argparse.ArgumentParser, settings: Settings, key: str, expected: type, default=None):
    value = settings.get(key, default)
    # bool is a subclass of int, so "threads = true" needs its own check
    if value is not None and (not isinstance(value, expected) or (expected is int and isinstance(value, bool))):
        parser.error(f"setting {key} in {settings.path} must be of type {expected.__name__}: {value!r}")
    return value


def _resolve_threads(parser: argparse.ArgumentParser, args, settings: Settings) -> int | None:
    if args.threads is not None:
        threads = args.threads
    elif os.environ.get(THREADS_ENV):
        try:
            threads = int(os.environ[THREADS_ENV])
        except ValueError:
            parser.error(f"{THREADS_ENV} must be an integer: {os.environ[THREADS_ENV]!r}")
    else:
        threads = _setting(parser, settings, SETTING_THREADS, int)

    if threads is not None and threads < 0:
        parser.error(f"number of threads must not be negative: {threads}")
    return threads


def _fail(message, status: int):
    print(f"burncheck: error: {message}", file=sys.stderr)
    sys.exit(status)


@profile_main
def burncheck_main(argv: list[str] | None = None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings(args.config)
    except (OSError, tomllib.TOMLDecodeError) as e:
        _fail(f"cannot load settings: {e}", EXIT_ERROR)

    configure_logging(
        args.log_file or _setting(parser, settings, SETTING_LOG_PATH, str),
        args.log_level or _setting(parser, settings, SETTING_LOG_LEVEL, str),
        args.verbose)

    threads = _resolve_threads(parser, args, settings)
    if args.hidden is not None:
        include_hidden = args.hidden
    else:
        include_hidden = _setting(parser, settings, SETTING_HIDDEN, bool, False)
    if args.suffix is not None:
        suffix = args.suffix
    else:
        suffix = _setting(parser, settings, SETTING_SUFFIX, str, DEFAULT_COMPRESSED_SUFFIX)
    algorithm = args.algorithm or _setting(parser, settings, SETTING_ALGORITHM, str, DEFAULT_DIGEST_ALGORITHM)
    digest_command = args.digest_command or _setting(parser, settings, SETTING_COMMAND, str)
    ignore_file = args.ignore or _setting(parser, settings, SETTING_IGNORE_FILE, str)

    try:
        if digest_command:
            digester = CommandDigester(digest_command, digest_width(algorithm))
        else:
            digester = HashDigester(algorithm)

        manifest_paths = expand_manifest_patterns(args.md5)

        with Processor(threads) as processor:
            inventory = Inventory(
                processor,
                args.folder,
                manifest_paths,
                ignore_file,
                include_hidden=include_hidden,
                suffix=suffix,
                digester=digester)
            summary = inventory.classify(ResultSink(sys.stdout))
    except DigestToolUnavailable as e:
        logger.error(f"Digest tool unavailable: {e}")
        _fail(e, EXIT_DIGEST_UNAVAILABLE)
    except OSError as e:
        logger.error(f"Aborted: {e}")
        _fail(e, EXIT_ERROR)

    logger.info(f"Done: {summary}")


if __name__ == '__main__':
    burncheck_main()
