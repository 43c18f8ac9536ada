# --------------------------------------------------------------------
# errors.py: Exceptions and error management tools.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Thursday, January 2 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
from pathlib import Path
from typing import Optional, Sequence, Union


# --------------------------------------------------------------------
class BuildError(Exception):
    pass


# --------------------------------------------------------------------
class ConfigError(BuildError):
    """ The project configuration could not be loaded or is malformed. """

    def __init__(self, path: Union[str, Path, None], message: str):
        self.path = path
        self.message = message
        if path is None:
            super().__init__(message)
        else:
            super().__init__("%s: %s" % (path, message))


# --------------------------------------------------------------------
class UnresolvedVariable(BuildError):
    def __init__(self, name: str, raw: str):
        self.name = name
        self.raw = raw
        super().__init__("'%s' references '%s' which is not defined" % (raw, name))


# --------------------------------------------------------------------
class VariableCycle(BuildError):
    def __init__(self, path: Sequence[str]):
        self.path = list(path)
        super().__init__("Variable cycle detected: %s" % " -> ".join(self.path))


# --------------------------------------------------------------------
class MalformedTemplate(BuildError):
    def __init__(self, raw: str, message: str):
        self.raw = raw
        self.message = message
        super().__init__("Malformed template '%s': %s" % (raw, message))


# --------------------------------------------------------------------
class CommandFailure(BuildError):
    """A spawned command exited with a failure code or could not be started.

    `returncode` is None when the process never started."""

    def __init__(
        self,
        target: str,
        index: Optional[int],
        command: str,
        returncode: Optional[int],
        reason: Optional[str] = None,
    ):
        self.target = target
        self.index = index
        self.command = command
        self.returncode = returncode
        self.reason = reason

        if returncode is None:
            msg = "Failed to start command '%s' in target '%s'" % (command, target)
            if reason:
                msg += ": %s" % reason
        else:
            msg = "Command '%s' in target '%s' has failed (returncode: %d)" % (
                command,
                target,
                returncode,
            )
        super().__init__(msg)


# --------------------------------------------------------------------
class StateIOError(BuildError):
    """ The persisted build state could not be read or written. """

    def __init__(self, path: Union[str, Path], message: str):
        self.path = path
        self.message = message
        super().__init__("%s: %s" % (path, message))
