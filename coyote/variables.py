# --------------------------------------------------------------------
# variables.py: Dependency-driven resolution of project variables.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Saturday September 26, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional, Set, Tuple

from . import template
from .config import Config
from .errors import UnresolvedVariable, VariableCycle
from .template import Substitution

# --------------------------------------------------------------------
log = Config.get().get_logger("coyote.variables")


# --------------------------------------------------------------------
class VariableTable(Mapping):
    """A read-only table of fully resolved variables.

    Iteration always yields names in ascending order, independent of the
    order in which the variables were declared or resolved."""

    def __init__(self, values: Dict[str, str]):
        self._values = dict(values)
        self._names = sorted(self._values)

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self):
        return "<VariableTable %r>" % dict(self.items())


# --------------------------------------------------------------------
class VariableGraph:
    """The reference graph between raw variable definitions.

    There is an edge `a -> b` whenever the raw value of `a` contains the
    placeholder `{b}`."""

    def __init__(self, raw_vars: Dict[str, str], commands=False):
        self.raw_vars = dict(raw_vars)
        self.edges: Dict[str, List[str]] = {
            name: template.references(raw, commands)
            for name, raw in self.raw_vars.items()
        }

    def resolve(self, substitute: Optional[Substitution] = None) -> VariableTable:
        resolved: Dict[str, str] = {}

        for root in sorted(self.edges):
            if root not in resolved:
                self._resolve_from(root, resolved, substitute)

        return VariableTable(resolved)

    def _resolve_from(
        self,
        root: str,
        resolved: Dict[str, str],
        substitute: Optional[Substitution],
    ):
        # Depth-first walk with an explicit stack, so that long reference
        # chains are not limited by the interpreter's recursion depth.
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(self.edges[root]))]
        resolving: Set[str] = {root}

        while stack:
            name, deps = stack[-1]

            for dep in deps:
                if dep in resolved:
                    continue
                if dep not in self.edges:
                    raise UnresolvedVariable(dep, self.raw_vars[name])
                if dep in resolving:
                    path = [frame[0] for frame in stack]
                    raise VariableCycle(path[path.index(dep) :] + [dep])
                resolving.add(dep)
                stack.append((dep, iter(self.edges[dep])))
                break

            else:
                stack.pop()
                resolving.discard(name)
                resolved[name] = template.expand(
                    self.raw_vars[name], resolved, substitute
                )
                log.debug("%s = %r", name, resolved[name])


# --------------------------------------------------------------------
def resolve(
    raw_vars: Dict[str, str], substitute: Optional[Substitution] = None
) -> VariableTable:
    """Resolve raw variable definitions into a table of expanded values.

    Variables may reference each other in any declaration order; each
    one is expanded only after everything it references.  If `substitute`
    is provided, backtick-quoted command spans in variable values are
    replaced by its result."""
    return VariableGraph(raw_vars, substitute is not None).resolve(substitute)
