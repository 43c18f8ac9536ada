# --------------------------------------------------------------------
# util.py: Common utility functions.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Thursday, January 2 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
from datetime import datetime, timedelta
from typing import Generator, Iterable, List, Optional, Set, TypeVar

# --------------------------------------------------------------------
T = TypeVar("T")


# --------------------------------------------------------------------
def badge(s: str) -> str:
    return "[ %s ]" % s


# --------------------------------------------------------------------
def decode(b: bytes) -> str:
    try:
        return b.decode("utf-8")
    except UnicodeDecodeError:
        return b.decode("ISO-8859-1")


# --------------------------------------------------------------------
def format_dt(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


# --------------------------------------------------------------------
def human_duration(delta: timedelta) -> str:
    """Render an elapsed time the way a person would say it, keeping
    only the two most significant units."""

    seconds = delta.total_seconds()
    if seconds < 1:
        return "%d milliseconds" % round(seconds * 1000)
    if seconds < 60:
        return "%.1f seconds" % seconds

    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)

    def plural(n: int, unit: str) -> str:
        return "%d %s%s" % (n, unit, "" if n == 1 else "s")

    if hours:
        return "%s %s" % (plural(hours, "hour"), plural(minutes, "minute"))
    return "%s %s" % (plural(minutes, "minute"), plural(secs, "second"))


# --------------------------------------------------------------------
def uniq(it: Iterable[T]) -> Generator[T, None, None]:
    """Filter the given iterable preserving order by removing
    any subsequent items already encountered."""

    visited: Set[T] = set()
    for x in it:
        if x not in visited:
            visited.add(x)
            yield x


# --------------------------------------------------------------------
def uniq_list(it: Iterable[T]) -> List[T]:
    return list(uniq(it))
