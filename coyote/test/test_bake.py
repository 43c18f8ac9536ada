# --------------------------------------------------------------------
# test_bake.py
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Sunday January 5, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path

from coyote.bake import build, main
from coyote.config import Config
from coyote.state import BuildState


# --------------------------------------------------------------------
def write_project(path, *commands, **variables):
    Path(path).write_text(
        json.dumps(
            {
                "project_name": "bake-test",
                "variables": variables,
                "executables": [{"target": "main", "commands": list(commands)}],
            }
        )
    )


# --------------------------------------------------------------------
def touch_command(name, run_if=None):
    result = {
        "command": sys.executable,
        "arguments": ["-c", "open('%s', 'a').write('x')" % name],
    }
    if run_if is not None:
        result["run_if"] = run_if
    return result


# --------------------------------------------------------------------
class BakeTests(unittest.TestCase):
    def setUp(self):
        self.olddir = Path.cwd()
        self.tempdir = tempfile.TemporaryDirectory()
        os.chdir(self.tempdir.name)
        Config._instance = None

    def tearDown(self):
        Config._instance = None
        os.chdir(self.olddir)
        self.tempdir.cleanup()

    def config(self, *argv) -> Config:
        return Config().load(list(argv))

    def test_config_paths(self):
        config = self.config()
        self.assertEqual(config.project_file, Path("coyote.json"))
        self.assertEqual(config.state_file, Path("coyote.LOCK"))
        self.assertFalse(config.rebuild)

        config = self.config("release", "--rebuild")
        self.assertEqual(config.recipe, "release")
        self.assertTrue(config.rebuild)
        self.assertEqual(config.project_file, Path("coyote-release.json"))
        self.assertEqual(config.state_file, Path("coyote-release.LOCK"))

        self.assertTrue(self.config("-r", "-q", "-v").quiet)

    def test_logger_is_registered_once(self):
        config = Config()
        logger = config.get_logger("coyote.test")
        self.assertIs(config.get_logger("coyote.test"), logger)
        self.assertEqual(Config._loggers.count(logger), 1)

    def test_log_messages_are_strings(self):
        write_project("coyote-release.json", touch_command("out.txt"))
        with self.assertLogs("coyote.bake", level="INFO") as ctx:
            self.assertTrue(build(self.config("release")))
            self.assertFalse(build(self.config()))
        self.assertTrue(ctx.records)
        for record in ctx.records:
            self.assertIsInstance(record.msg, str)

    def test_build(self):
        write_project("coyote.json", touch_command("out.txt"))
        self.assertTrue(build(self.config()))
        self.assertEqual(Path("out.txt").read_text(), "x")
        self.assertTrue(Path("coyote.LOCK").exists())

    def test_gated_build_skips_second_time(self):
        Path("in.txt").write_text("input")
        write_project(
            "coyote.json", touch_command("out.txt", run_if=["modified", "in.txt"])
        )
        self.assertTrue(build(self.config()))
        self.assertTrue(build(self.config()))
        self.assertEqual(Path("out.txt").read_text(), "x")

        self.assertTrue(build(self.config("--rebuild")))
        self.assertEqual(Path("out.txt").read_text(), "xx")

    def test_recipe(self):
        write_project("coyote.json", touch_command("default.txt"))
        write_project("coyote-release.json", touch_command("{name}.txt"), name="release")
        self.assertTrue(build(self.config("release")))
        self.assertTrue(Path("release.txt").exists())
        self.assertFalse(Path("default.txt").exists())
        self.assertTrue(Path("coyote-release.LOCK").exists())
        self.assertFalse(Path("coyote.LOCK").exists())

    def test_missing_project(self):
        self.assertFalse(build(self.config()))
        self.assertFalse(build(self.config("nope")))

    def test_malformed_project(self):
        Path("coyote.json").write_text("{")
        self.assertFalse(build(self.config()))

    def test_malformed_state_is_ignored(self):
        Path("in.txt").write_text("input")
        write_project(
            "coyote.json", touch_command("out.txt", run_if=["modified", "in.txt"])
        )
        Path("coyote.LOCK").write_text("garbage")
        self.assertTrue(build(self.config()))
        self.assertIn("in.txt", BuildState.read("coyote.LOCK"))

    def test_failure(self):
        write_project(
            "coyote.json",
            {"command": sys.executable, "arguments": ["-c", "import sys; sys.exit(1)"]},
        )
        self.assertFalse(build(self.config()))

    def test_template_error(self):
        write_project("coyote.json", touch_command("{missing}.txt"))
        self.assertFalse(build(self.config()))
        self.assertEqual(sorted(p.name for p in Path(".").iterdir()), ["coyote.json"])

    def test_list_and_tree_run_nothing(self):
        write_project("coyote.json", touch_command("out.txt", run_if=["modified", "x"]))
        self.assertTrue(build(self.config("--list")))
        self.assertTrue(build(self.config("--tree")))
        self.assertFalse(Path("out.txt").exists())
        self.assertFalse(Path("coyote.LOCK").exists())

    def test_directory(self):
        os.mkdir("sub")
        write_project("sub/coyote.json", touch_command("out.txt"))
        self.assertTrue(build(self.config("-C", "sub")))
        self.assertTrue(Path("out.txt").exists())

    def test_main_exit_code(self):
        write_project(
            "coyote.json",
            {"command": sys.executable, "arguments": ["-c", "import sys; sys.exit(4)"]},
        )
        with self.assertRaises(SystemExit) as ctx:
            main([])
        self.assertEqual(ctx.exception.code, 1)

    def test_main_success(self):
        write_project("coyote.json", touch_command("out.txt"))
        main(["-q"])
        self.assertTrue(Path("out.txt").exists())


# --------------------------------------------------------------------
if __name__ == "__main__":
    unittest.main()
