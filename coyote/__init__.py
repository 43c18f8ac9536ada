# -------------------------------------------------------------------
# Coyote: A declarative JSON-driven build system.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Wednesday, August 12 2020
#
# Distributed under terms of the MIT license.
# -------------------------------------------------------------------
from .build import BuildEngine, run
from .errors import (
    BuildError,
    CommandFailure,
    ConfigError,
    MalformedTemplate,
    StateIOError,
    UnresolvedVariable,
    VariableCycle,
)
from .project import Command, Condition, ConditionKind, Project, Target
from .reports import BuildReport, CommandReport, Status, TargetReport
from .state import BuildState, is_stale, record
from .template import expand
from .variables import VariableTable, resolve
