# --------------------------------------------------------------------
# bake.py: The `coyote` command line entry point.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Sunday January 5, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------

import json
import os
import sys
from typing import Optional, Sequence

from ansilog import fg

from .build import BuildEngine
from .config import Config
from .errors import BuildError, ConfigError
from .project import Project
from .state import BuildState

log = Config.get().get_logger("coyote.bake")


# --------------------------------------------------------------------
def load_project(config: Config) -> Project:
    path = config.project_file
    if config.recipe and not path.exists():
        raise ConfigError(
            path,
            "Couldn't find file for recipe '%s' (note - recipe JSON files must "
            "be prefixed with 'coyote-' to be recognised)" % config.recipe,
        )
    if not path.exists():
        raise ConfigError(path, "Directory does not contain `%s`" % path)
    return Project.load(path)


# --------------------------------------------------------------------
def build(config: Optional[Config] = None) -> bool:
    """Load the project selected by the config and build it.

    Returns True if the build succeeded, or if only a listing was asked
    for.  Every failure is logged before returning False."""

    config = config or Config.get()

    try:
        if config.directory:
            os.chdir(config.directory)

        project = load_project(config)
        engine = BuildEngine(project, config)

        if config.print_tree:
            engine.print_tree()
            return True

        if config.list_targets:
            engine.print_targets()
            return True

        if config.recipe and not config.quiet:
            log.info(str(fg.green(f"Building recipe '{config.recipe}'")))

        state = BuildState.load(config.state_file)
        report = engine.run(state, force=config.rebuild)

        if config.debug:
            log.debug(json.dumps(report.generate(), indent=2))

        if report.failed():
            log.info(str(fg.red("FAIL")))
            return False

        log.info(str(fg.green("OK")))
        return True

    except (BuildError, OSError) as e:
        log.error(str(e))
        if config.debug:
            log.exception("Exception details >>>")
        log.info(str(fg.red("FAIL")))
        return False


# --------------------------------------------------------------------
def main(argv: Optional[Sequence[str]] = None):
    config = Config.get().load(argv)

    if config.help:
        config.print_help()
        return

    if not build(config):
        sys.exit(1)


# --------------------------------------------------------------------
if __name__ == "__main__":
    main()
