# --------------------------------------------------------------------
# build.py: The execution engine, running project targets in order.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Wednesday, August 12 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from ansilog import dim, fg
from tree_format import format_tree

from . import template
from .config import Config
from .errors import CommandFailure, StateIOError
from .project import Command, Project, Target
from .reports import BuildReport, CommandReport, Status, TargetReport
from .shell import ShellCommand, check
from .state import BuildState, is_stale, record
from .template import Substitution
from .util import badge, human_duration
from .variables import VariableTable, resolve

# --------------------------------------------------------------------
log = Config.get().get_logger("coyote.build")


# --------------------------------------------------------------------
@dataclass(frozen=True)
class Step:
    """ A command of a target with all of its strings expanded. """

    target: str
    index: int
    total: int
    command: str
    arguments: Tuple[str, ...]
    watch: Optional[str] = None

    @property
    def display_info(self) -> str:
        return " ".join([self.command, *self.arguments])


Plan = List[Tuple[Target, List[Step]]]


# --------------------------------------------------------------------
class BuildEngine:
    """Runs the targets of a project in order, one command at a time.

    Every string in the project is expanded before anything is run, so a
    bad placeholder anywhere aborts the build before the first command.
    After that, commands guarded by a `modified` condition are skipped
    when the watched file hasn't changed since it was last recorded in the
    build state, and the first failing command stops the build."""

    def __init__(
        self,
        project: Project,
        config: Optional[Config] = None,
        substitute: Optional[Substitution] = check,
    ):
        self.project = project
        self.config = config or Config.get()
        self.substitute = substitute

    def variables(self) -> VariableTable:
        return resolve(self.project.variables, self.substitute)

    def plan(self, table: Optional[VariableTable] = None) -> Plan:
        """Expand the commands, arguments and conditions of every target
        using the resolved variable table."""
        if table is None:
            table = self.variables()

        plan: Plan = []
        for target in self.project.targets:
            steps = [
                self._expand(target, n, command, table)
                for n, command in enumerate(target.commands, 1)
            ]
            plan.append((target, steps))
        return plan

    def _expand(
        self, target: Target, index: int, command: Command, table: VariableTable
    ) -> Step:
        watch = None
        if command.run_if is not None:
            watch = template.expand(command.run_if.path, table)

        return Step(
            target=target.name,
            index=index,
            total=len(target.commands),
            command=template.expand(command.command, table),
            arguments=tuple(template.expand(arg, table) for arg in command.arguments),
            watch=watch,
        )

    def run(self, state: BuildState, force=False) -> BuildReport:
        # Command substitutions block, so plan before the event loop starts.
        plan = self.plan()
        return asyncio.run(self.resolve(state, force, plan))

    async def resolve(
        self, state: BuildState, force=False, plan: Optional[Plan] = None
    ) -> BuildReport:
        """Build every target of the project.

        Configuration errors are raised before anything runs.  A failing
        command is reported in the returned BuildReport's `error`.  Without
        a precomputed `plan`, the project is planned here, and any command
        substitutions block the running event loop."""
        if plan is None:
            plan = self.plan()
        report = BuildReport(self.project.name, started=datetime.now())

        try:
            for n, (target, steps) in enumerate(plan, 1):
                self.log_info(
                    f"[{n}/{len(plan)}] {fg.cyan('Building target')} '{target.name}'"
                )
                target_report = TargetReport(target.name, started=datetime.now())
                report.target_reports.append(target_report)
                try:
                    for step in steps:
                        await self._run_step(step, state, force, target_report)
                finally:
                    target_report.finished = datetime.now()

        except CommandFailure as e:
            report.error = e

        finally:
            report.finished = datetime.now()
            self._save(state)

        if report.succeeded():
            self.log_info(
                str(
                    fg.green(
                        f"Finished building project '{self.project.name}' "
                        f"in {human_duration(report.elapsed)}"
                    )
                )
            )
        else:
            log.error(str(report.error))

        return report

    async def _run_step(
        self, step: Step, state: BuildState, force: bool, target_report: TargetReport
    ):
        report = CommandReport(step.display_info, index=step.index, started=datetime.now())
        target_report.command_reports.append(report)
        prefix = dim(f"({step.index}/{step.total}) ->")

        if step.watch is not None and not force and not is_stale(step.watch, state):
            report.finished = datetime.now()
            self.log_info(f"   {prefix} {badge(dim('skip'))} {dim(step.display_info)}")
            return

        shell = ShellCommand(step.command, step.arguments)
        self.log_info(f"   {prefix} {shell.ansi_display_info}")

        try:
            result = await shell.run()
        except OSError as e:
            report.finished = datetime.now()
            report.status = Status.FAILED
            raise CommandFailure(
                step.target, step.index, shell.display_info, None, str(e)
            ) from e

        report.finished = datetime.now()
        report.returncode = result.returncode

        if not shell.succeeded:
            report.status = Status.FAILED
            for line in result.stderr:
                log.error(f"{badge(fg.red(step.target))} {line}")
            raise CommandFailure(
                step.target, step.index, shell.display_info, result.returncode
            )

        report.status = Status.RAN
        if self.config.verbose:
            for line in result.stdout:
                log.info(f"{badge(dim(step.target))} {line}")
            for line in result.stderr:
                log.info(f"{badge(fg.yellow(step.target))} {line}")

        if step.watch is not None:
            record(step.watch, state)
        self.log_info(f"   {prefix} {badge(fg.green('ok'))} {step.display_info}")

    def _save(self, state: BuildState):
        try:
            state.save()
        except StateIOError as e:
            log.warning("%s (the next build may repeat work)", e)

    def log_info(self, msg, *args):
        if not self.config.quiet:
            log.info(msg, *args)

    def print_targets(self):
        """ Logs the list of targets defined by the project. """
        for target in self.project.targets:
            count = len(target.commands)
            log.info(
                f"{fg.cyan(target.name)} "
                + str(dim("(%d command%s)" % (count, "" if count == 1 else "s")))
            )

    def print_tree(self):
        """ Prints a tree of the project's targets and their commands. """

        def command_node(command: Command):
            label = str(command)
            if command.run_if is not None:
                label += " " + str(dim("[if %s]" % " ".join(command.run_if.to_list())))
            return (label, [])

        root = (
            str(fg.green(self.project.name)),
            [
                (str(fg.cyan(t.name)), [command_node(c) for c in t.commands])
                for t in self.project.targets
            ],
        )

        log.info(
            format_tree(
                root, format_node=lambda node: node[0], get_children=lambda node: node[1]
            )
        )


# --------------------------------------------------------------------
def run(project: Project, state: BuildState, force=False) -> BuildReport:
    """ Build the project against the given state.  See `BuildEngine`. """
    return BuildEngine(project).run(state, force)
