# --------------------------------------------------------------------
# test_shell.py
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Wednesday, August 12 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------

import asyncio
import sys
import unittest
from unittest.mock import patch

from coyote.errors import MalformedTemplate
from coyote.shell import AsyncOutputCollector, ShellCommand, check


# --------------------------------------------------------------------
class ShellTests(unittest.TestCase):
    def test_output_is_collected(self):
        shell = ShellCommand(
            sys.executable,
            ["-c", "import sys; print('out'); print('err', file=sys.stderr)"],
        )
        result = asyncio.run(shell.run())
        self.assertTrue(shell.succeeded)
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stdout, ["out"])
        self.assertEqual(result.stderr, ["err"])

    def test_arguments_are_not_split(self):
        shell = ShellCommand(
            sys.executable, ["-c", "import sys; print(sys.argv[1])", "a b  {c}"]
        )
        result = asyncio.run(shell.run())
        self.assertEqual(result.stdout, ["a b  {c}"])

    def test_failure(self):
        shell = ShellCommand(sys.executable, ["-c", "import sys; sys.exit(5)"])
        result = asyncio.run(shell.run())
        self.assertFalse(shell.succeeded)
        self.assertEqual(result.returncode, 5)

    def test_success_codes(self):
        shell = ShellCommand(
            sys.executable, ["-c", "import sys; sys.exit(5)"], success_codes={0, 5}
        )
        asyncio.run(shell.run())
        self.assertTrue(shell.succeeded)
        self.assertFalse(ShellCommand("true").succeeded)

    def test_long_lines(self):
        shell = ShellCommand(
            sys.executable,
            ["-c", "import sys; sys.stdout.write('x' * 200000 + '\\n' + 'tail')"],
        )
        result = asyncio.run(shell.run())
        self.assertTrue(shell.succeeded)
        self.assertEqual(result.stdout, ["x" * 200000, "tail"])

    def test_process_is_killed_on_error(self):
        procs = []

        async def collect(collector, proc, sink):
            procs.append(proc)
            raise RuntimeError("collector failed")

        shell = ShellCommand(sys.executable, ["-c", "import time; time.sleep(30)"])
        with patch.object(AsyncOutputCollector, "collect", collect):
            with self.assertRaises(RuntimeError):
                asyncio.run(shell.run())
        [proc] = procs
        self.assertIsNotNone(proc.returncode)
        self.assertFalse(shell.succeeded)

    def test_not_found(self):
        shell = ShellCommand("/nonexistent/coyote-test-program")
        with self.assertRaises(OSError):
            asyncio.run(shell.run())
        self.assertFalse(shell.succeeded)

    def test_display_info(self):
        shell = ShellCommand("gcc", ["hello.c", "-o", "my program"])
        self.assertEqual(shell.display_info, "gcc hello.c -o 'my program'")

    def test_check(self):
        self.assertEqual(check("'%s' -c 'print(\"  hi  \")'" % sys.executable), "hi")

    def test_check_parse_errors(self):
        with self.assertRaises(MalformedTemplate):
            check("echo 'unterminated")
        with self.assertRaises(MalformedTemplate):
            check("   ")


# --------------------------------------------------------------------
if __name__ == "__main__":
    unittest.main()
