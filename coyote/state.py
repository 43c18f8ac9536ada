# --------------------------------------------------------------------
# state.py: Persisted build state and file staleness checks.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Saturday September 26, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
import json
import os
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from .config import Config
from .errors import StateIOError

# --------------------------------------------------------------------
log = Config.get().get_logger("coyote.state")

# --------------------------------------------------------------------
PathLike = Union[str, Path]


# --------------------------------------------------------------------
class BuildState:
    """The last recorded modification time of each tracked file.

    Timestamps are integer nanoseconds since the epoch, keyed by the
    file path exactly as it appears in the expanded `run_if` condition.
    A state with no `path` lives only in memory."""

    def __init__(
        self,
        last_modified: Optional[Dict[str, int]] = None,
        path: Optional[PathLike] = None,
    ):
        self.last_modified: Dict[str, int] = dict(last_modified or {})
        self.path = Path(path) if path is not None else None

    def get(self, file: str) -> Optional[int]:
        return self.last_modified.get(file)

    def update(self, file: str, mtime: int):
        previous = self.last_modified.get(file)
        if previous is None or mtime > previous:
            self.last_modified[file] = mtime

    def __contains__(self, file: str) -> bool:
        return file in self.last_modified

    def __iter__(self) -> Iterator[str]:
        return iter(self.last_modified)

    def __len__(self) -> int:
        return len(self.last_modified)

    def to_json(self) -> str:
        return json.dumps({"last_modified": self.last_modified}, indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, text: str, path: Optional[PathLike] = None) -> "BuildState":
        data = json.loads(text)
        if not isinstance(data, dict) or not isinstance(data.get("last_modified"), dict):
            raise ValueError("'last_modified' must be an object")

        last_modified: Dict[str, int] = {}
        for file, mtime in data["last_modified"].items():
            if isinstance(mtime, bool) or not isinstance(mtime, int):
                raise ValueError("Timestamp for '%s' is not an integer" % file)
            last_modified[file] = mtime
        return cls(last_modified, path)

    @classmethod
    def read(cls, path: PathLike) -> "BuildState":
        """Read the build state from the given file.

        A missing or empty file is an empty state.  Any other failure is
        raised as a StateIOError."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls(path=path)
        except (OSError, ValueError) as e:
            raise StateIOError(path, "Failed to read build state: %s" % e) from e

        if not text.strip():
            return cls(path=path)

        try:
            return cls.from_json(text, path)
        except ValueError as e:
            raise StateIOError(path, "Malformed build state detected: %s" % e) from e

    @classmethod
    def load(cls, path: PathLike) -> "BuildState":
        """Read the build state, degrading to an empty state bound to the
        same path if it can't be read.  Every tracked file is then stale."""
        try:
            return cls.read(path)
        except StateIOError as e:
            log.warning("%s (every file will be treated as modified)", e)
            return cls(path=path)

    def save(self):
        if self.path is None:
            return
        try:
            self.path.write_text(self.to_json() + "\n", encoding="utf-8")
        except OSError as e:
            raise StateIOError(self.path, "Failed to write build state: %s" % e) from e
        log.debug("Wrote %d entries to %s", len(self), self.path)

    def __repr__(self):
        return "<BuildState %s (%d files)>" % (self.path or "<memory>", len(self))


# --------------------------------------------------------------------
def modified_time(file: PathLike) -> int:
    return os.stat(file).st_mtime_ns


# --------------------------------------------------------------------
def is_stale(file: str, state: BuildState) -> bool:
    """Determine if the given file was modified since it was last recorded.

    Files that were never recorded, or that can't be examined, are always
    considered stale."""
    recorded = state.get(file)
    if recorded is None:
        log.debug("'%s' has not been built before.", file)
        return True

    try:
        current = modified_time(file)
    except OSError as e:
        log.debug("Cannot read metadata of '%s': %s", file, e)
        return True

    return current > recorded


# --------------------------------------------------------------------
def record(file: str, state: BuildState) -> BuildState:
    """Record the current modification time of the given file.  This should
    be called only after the command it guards has succeeded."""
    try:
        state.update(file, modified_time(file))
    except OSError as e:
        log.warning("Cannot read or open metadata of file '%s': %s", file, e)
    return state
