# --------------------------------------------------------------------
# config.py: Coyote configuration options.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Thursday, January 2 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

import ansilog

# --------------------------------------------------------------------
DEFAULT_PROJECT_FILE = "coyote.json"
DEFAULT_STATE_FILE = "coyote.LOCK"

# --------------------------------------------------------------------
HELP = """
# Coyote: A declarative JSON-driven build system.
## Usage: `coyote [OPTION]... [RECIPE]`
Build every target defined in `coyote.json`, or in `coyote-RECIPE.json` if a
recipe name is given.  Commands guarded by `run_if` are skipped when the file
they watch has not been modified since the last successful build.

## Options
- `-r, --rebuild`: Run every command regardless of `coyote.LOCK`
  (ignores `run_if` conditions, but still refreshes the lock afterwards).
- `-l, --list`: List the targets defined by the project.
- `--tree`: Print a tree of the targets and commands of the project.
- `-C, --directory`: Change to the given directory before doing anything.
- `-v, --verbose`: Print the output of each command as it finishes.
- `-q, --quiet`: Print nothing during builds, unless something goes wrong.
- `-D, --debug`: Causes coyote to print copious amounts of diagnostic info,
  including stack traces for build errors.
  Can also be enabled by setting the `COYOTE_DEBUG` environment variable.
""".strip()


# --------------------------------------------------------------------
class Config:
    """ Defines the command line parameters and other configuration options."""

    _instance: Optional["Config"] = None
    _loggers: List[logging.Logger] = []

    def __init__(self):
        self.recipe: Optional[str] = None
        self.rebuild = False
        self.help = False
        self.verbose = False
        self.quiet = False
        self.print_tree = False
        self.list_targets = False
        self.directory: Optional[str] = None
        self.debug = "COYOTE_DEBUG" in os.environ

    @property
    def project_file(self) -> Path:
        if self.recipe:
            return Path("coyote-%s.json" % self.recipe)
        return Path(DEFAULT_PROJECT_FILE)

    @property
    def state_file(self) -> Path:
        if self.recipe:
            return Path("coyote-%s.LOCK" % self.recipe)
        return Path(DEFAULT_STATE_FILE)

    def print_help(self):
        self.get_logger("coyote.config").info(HELP)

    def _apply_level(self, logger: logging.Logger):
        level = logging.DEBUG if self.debug else logging.INFO
        ansilog.handler.setLevel(level)
        logger.setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        logger = ansilog.getLogger(name)
        self._apply_level(logger)
        if logger not in self._loggers:
            self._loggers.append(logger)
        return logger

    @classmethod
    def get_parser(cls, desc) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description=desc, add_help=False)
        parser.add_argument("recipe", nargs="?", default=None)
        parser.add_argument("--help", "-h", dest="help", action="store_true")
        parser.add_argument("--rebuild", "-r", dest="rebuild", action="store_true")
        parser.add_argument("--verbose", "-v", dest="verbose", action="store_true")
        parser.add_argument("--quiet", "-q", dest="quiet", action="store_true")
        parser.add_argument("--tree", dest="print_tree", action="store_true")
        parser.add_argument("--list", "-l", dest="list_targets", action="store_true")
        parser.add_argument("--debug", "-D", dest="debug", action="store_true")
        parser.add_argument("--directory", "-C", dest="directory")
        return parser

    @classmethod
    def get(cls) -> "Config":
        if cls._instance is None:
            cls._instance = Config()
        return cls._instance

    def load(
        self, argv: Optional[Sequence[str]] = None, desc="Build parameters"
    ) -> "Config":
        parser = self.get_parser(desc)
        parser.parse_args(argv, namespace=self)
        for logger in self._loggers:
            self._apply_level(logger)
        return self
