"""cProfile support, enabled by the BURNCHECK_PROFILE environment variable.

When BURNCHECK_PROFILE names a directory, the command line entry point and every
classification lane are profiled. All files of one run are written to a session
subdirectory named ``{timestamp_ms}_{pid}``:

    main_{pid}_{seq}.prof       the whole run
    worker_{pid}_{seq}.prof     one classification lane

Python 3.12 and later allow one active profiler per process; there the lanes
are covered by the main profile instead of files of their own.
"""
import cProfile
import functools
import itertools
import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, TypeVar, ParamSpec

P = ParamSpec('P')
T = TypeVar('T')

logger = logging.getLogger(__name__)

PROFILE_ENV = 'BURNCHECK_PROFILE'
_SESSION_ENV = '_BURNCHECK_PROFILE_SESSION_DIR'

_profile_counter = itertools.count()
_counter_lock = threading.Lock()


def get_profile_dir() -> Path | None:
    """Directory receiving the profiles of the current session, or None when profiling is off."""
    profile_path = os.environ.get(PROFILE_ENV)
    if profile_path:
        return Path(profile_path) / _get_session_dir_name()
    return None


def _get_session_dir_name() -> str:
    session_dir = os.environ.get(_SESSION_ENV)
    if session_dir:
        return session_dir
    return f"{int(time.time() * 1000)}_{os.getpid()}"


def generate_profile_filename(prefix: str = "profile") -> str:
    with _counter_lock:
        seq = next(_profile_counter)
    return f"{prefix}_{os.getpid()}_{seq}.prof"


def profile_function(func: Callable[P, T], prefix: str = "profile") -> Callable[P, T]:
    """Wrap func so that each call is profiled while BURNCHECK_PROFILE is set."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        profile_dir = get_profile_dir()
        if profile_dir is None:
            return func(*args, **kwargs)

        profile_dir.mkdir(parents=True, exist_ok=True)
        profile_file = profile_dir / generate_profile_filename(prefix)

        profiler = cProfile.Profile()
        try:
            profiler.enable()
        except ValueError as e:
            # Python 3.12+ allows a single active profiler per process
            logger.debug(f"Not profiling {func.__qualname__}: {e}")
            return func(*args, **kwargs)

        try:
            return func(*args, **kwargs)
        finally:
            profiler.disable()
            profiler.dump_stats(str(profile_file))

    return wrapper


def profile_main(func: Callable[P, T]) -> Callable[P, T]:
    """Profile the entry point and pin the session directory for the lanes it starts."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        if os.environ.get(PROFILE_ENV):
            os.environ[_SESSION_ENV] = _get_session_dir_name()

        return profile_function(func, prefix="main")(*args, **kwargs)

    return wrapper


def profile_worker(func: Callable[P, T]) -> Callable[P, T]:
    return profile_function(func, prefix="worker")
