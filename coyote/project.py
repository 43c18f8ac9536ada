# --------------------------------------------------------------------
# project.py: The project model and its JSON loader.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Saturday September 26, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import Config
from .errors import ConfigError

# --------------------------------------------------------------------
log = Config.get().get_logger("coyote.project")

# --------------------------------------------------------------------
PathLike = Union[str, Path]


# --------------------------------------------------------------------
class ConditionKind(Enum):
    MODIFIED = "modified"


# --------------------------------------------------------------------
@dataclass(frozen=True)
class Condition:
    kind: ConditionKind
    operands: Tuple[str, ...]

    @property
    def path(self) -> str:
        return self.operands[0]

    def to_list(self) -> List[str]:
        return [self.kind.value, *self.operands]


# --------------------------------------------------------------------
@dataclass(frozen=True)
class Command:
    command: str
    arguments: Tuple[str, ...] = ()
    run_if: Optional[Condition] = None

    def __str__(self):
        return " ".join([self.command, *self.arguments])


# --------------------------------------------------------------------
@dataclass(frozen=True)
class Target:
    name: str
    commands: Tuple[Command, ...] = ()


# --------------------------------------------------------------------
@dataclass(frozen=True)
class Project:
    name: str
    variables: Dict[str, str] = field(default_factory=dict)
    targets: Tuple[Target, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, source: Optional[PathLike] = None) -> "Project":
        """Map the untyped JSON structure of a project file onto the
        project model, rejecting anything with the wrong shape."""
        return _Loader(source).project(data)

    @classmethod
    def load(cls, path: PathLike) -> "Project":
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as infile:
                data = json.load(infile)
        except FileNotFoundError as e:
            raise ConfigError(path, "Project file does not exist.") from e
        except OSError as e:
            raise ConfigError(path, "Failed to read project file: %s" % e) from e
        except ValueError as e:
            raise ConfigError(path, "Malformed project file detected: %s" % e) from e

        project = cls.from_dict(data, path)
        log.debug(
            "Loaded project '%s' from %s (%d targets)",
            project.name,
            path,
            len(project.targets),
        )
        return project


# --------------------------------------------------------------------
class _Loader:
    def __init__(self, source: Optional[PathLike]):
        self.source = source

    def fail(self, message: str):
        raise ConfigError(self.source, message)

    def expect(self, value: Any, kind: type, where: str) -> Any:
        if not isinstance(value, kind):
            self.fail(
                "%s must be of type %s, not %s."
                % (where, _json_type_name(kind), _json_type_name(type(value)))
            )
        return value

    def strings(self, value: Any, where: str) -> Tuple[str, ...]:
        self.expect(value, list, where)
        return tuple(
            self.expect(s, str, "%s[%d]" % (where, n)) for n, s in enumerate(value)
        )

    def project(self, data: Any) -> Project:
        self.expect(data, dict, "The project")
        if "project_name" not in data:
            self.fail("Missing required field 'project_name'.")
        name = self.expect(data["project_name"], str, "'project_name'")

        variables = self.expect(data.get("variables", {}), dict, "'variables'")
        for key, value in variables.items():
            self.expect(value, str, "Variable '%s'" % key)

        executables = self.expect(data.get("executables", []), list, "'executables'")
        targets = tuple(
            self.target(exe, "executables[%d]" % n) for n, exe in enumerate(executables)
        )
        return Project(name, dict(variables), targets)

    def target(self, data: Any, where: str) -> Target:
        self.expect(data, dict, where)
        if "target" not in data:
            self.fail("%s is missing required field 'target'." % where)
        name = self.expect(data["target"], str, "%s.target" % where)
        commands = self.expect(data.get("commands", []), list, "%s.commands" % where)
        return Target(
            name,
            tuple(
                self.command(cmd, name, "%s.commands[%d]" % (where, n))
                for n, cmd in enumerate(commands)
            ),
        )

    def command(self, data: Any, target: str, where: str) -> Command:
        self.expect(data, dict, where)
        if "command" not in data:
            self.fail("%s is missing required field 'command'." % where)
        command = self.expect(data["command"], str, "%s.command" % where)
        arguments = self.strings(data.get("arguments", []), "%s.arguments" % where)

        run_if = None
        if data.get("run_if") is not None:
            run_if = self.condition(data["run_if"], target, "%s.run_if" % where)

        return Command(command, arguments, run_if)

    def condition(self, data: Any, target: str, where: str) -> Condition:
        parts = self.strings(data, where)
        if not parts:
            self.fail("No condition specifier for 'run_if' in target '%s'." % target)

        try:
            kind = ConditionKind(parts[0])
        except ValueError:
            self.fail("Unknown condition type '%s' in target '%s'." % (parts[0], target))

        if kind == ConditionKind.MODIFIED and len(parts) != 2:
            self.fail(
                "Condition 'modified' in target '%s' must have 1 argument: <path>"
                % target
            )

        return Condition(kind, parts[1:])


# --------------------------------------------------------------------
def _json_type_name(kind: type) -> str:
    return {
        dict: "object",
        list: "array",
        str: "string",
        int: "number",
        float: "number",
        bool: "boolean",
        type(None): "null",
    }.get(kind, kind.__name__)
