# --------------------------------------------------------------------
# reports.py: Reporting and result aggregation in JSON format.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Thursday, January 2 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from .errors import BuildError
from .util import format_dt


# --------------------------------------------------------------------
class Status(Enum):
    RAN = "ran"
    SKIPPED = "skipped"
    FAILED = "failed"


# --------------------------------------------------------------------
# pylint: disable=R0201
@dataclass
class Report:
    name: str
    started: Optional[datetime] = None
    finished: Optional[datetime] = None

    def __post_init__(self):
        self.id = str(uuid.uuid4())

    def succeeded(self) -> bool:
        return True

    def failed(self) -> bool:
        return not self.succeeded()

    @property
    def elapsed(self) -> timedelta:
        if self.started is None or self.finished is None:
            return timedelta(0)
        return self.finished - self.started

    def generate(self):
        return {
            "type": type(self).__qualname__,
            "name": self.name,
            "id": self.id,
            "started": format_dt(self.started),
            "finished": format_dt(self.finished),
            "succeeded": self.succeeded(),
        }


# --------------------------------------------------------------------
@dataclass
class CommandReport(Report):
    index: int = 0
    status: Status = Status.SKIPPED
    returncode: Optional[int] = None

    def succeeded(self) -> bool:
        return self.status != Status.FAILED

    def generate(self):
        return {
            **super().generate(),
            "index": self.index,
            "status": self.status.value,
            "returncode": self.returncode,
        }


# --------------------------------------------------------------------
@dataclass
class TargetReport(Report):
    command_reports: List[CommandReport] = field(default_factory=list)

    def succeeded(self) -> bool:
        return all(r.succeeded() for r in self.command_reports)

    def generate(self):
        return {
            **super().generate(),
            "commands": [r.generate() for r in self.command_reports],
        }


# --------------------------------------------------------------------
@dataclass
class BuildReport(Report):
    """ The outcome of a build: what ran, what was skipped and what failed. """

    target_reports: List[TargetReport] = field(default_factory=list)
    error: Optional[BuildError] = None

    def succeeded(self) -> bool:
        return self.error is None and all(r.succeeded() for r in self.target_reports)

    def commands(self, status: Optional[Status] = None) -> List[CommandReport]:
        return [
            c
            for t in self.target_reports
            for c in t.command_reports
            if status is None or c.status == status
        ]

    @property
    def ran(self) -> List[CommandReport]:
        return self.commands(Status.RAN)

    @property
    def skipped(self) -> List[CommandReport]:
        return self.commands(Status.SKIPPED)

    def generate(self):
        return {
            **super().generate(),
            "error": str(self.error) if self.error is not None else None,
            "targets": [r.generate() for r in self.target_reports],
        }
