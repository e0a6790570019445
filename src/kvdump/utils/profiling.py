"""Profiling support using cProfile.

When KVDUMP_PROFILE names a directory, the wrapped entry point runs under
cProfile and its statistics are written to
``$KVDUMP_PROFILE/{timestamp_ms}_{pid}/main_{pid}_{seq}.prof``.
"""
import cProfile
import functools
import itertools
import os
import time
from pathlib import Path
from typing import Callable, TypeVar, ParamSpec

P = ParamSpec('P')
T = TypeVar('T')

PROFILE_ENVIRONMENT_VARIABLE = 'KVDUMP_PROFILE'

# Keeps file names unique when the same process profiles more than once
_profile_counter = itertools.count()


def get_profile_dir() -> Path | None:
    """Session directory for profile data, or None when profiling is off."""
    profile_path = os.environ.get(PROFILE_ENVIRONMENT_VARIABLE)
    if profile_path:
        return Path(profile_path) / f"{int(time.time() * 1000)}_{os.getpid()}"
    return None


def profile_main(func: Callable[P, T]) -> Callable[P, T]:
    """Profile the decorated entry point if KVDUMP_PROFILE is set."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        profile_dir = get_profile_dir()

        if profile_dir is None:
            return func(*args, **kwargs)

        profile_dir.mkdir(parents=True, exist_ok=True)
        profile_file = profile_dir / f"main_{os.getpid()}_{next(_profile_counter)}.prof"

        profiler = cProfile.Profile()
        try:
            profiler.enable()
            return func(*args, **kwargs)
        finally:
            profiler.disable()
            profiler.dump_stats(str(profile_file))

    return wrapper
