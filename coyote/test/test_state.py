# --------------------------------------------------------------------
# test_state.py
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Saturday September 26, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------

import os
import tempfile
import unittest
from pathlib import Path

from coyote.errors import StateIOError
from coyote.state import BuildState, is_stale, modified_time, record

SECOND = 1000000000


# --------------------------------------------------------------------
def touch(path: Path, mtime_ns: int):
    path.touch()
    os.utime(path, ns=(mtime_ns, mtime_ns))


# --------------------------------------------------------------------
class StateTests(unittest.TestCase):
    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tempdir.name)
        self.file = self.root / "hello.c"
        self.mtime = 1600000000 * SECOND
        touch(self.file, self.mtime)

    def tearDown(self):
        self.tempdir.cleanup()

    def test_never_recorded_is_stale(self):
        self.assertTrue(is_stale(str(self.file), BuildState()))

    def test_recorded_is_not_stale(self):
        state = record(str(self.file), BuildState())
        self.assertEqual(state.get(str(self.file)), self.mtime)
        self.assertFalse(is_stale(str(self.file), state))

    def test_newer_file_is_stale(self):
        state = record(str(self.file), BuildState())
        touch(self.file, self.mtime + SECOND)
        self.assertTrue(is_stale(str(self.file), state))

    def test_older_file_is_not_stale(self):
        state = BuildState({str(self.file): self.mtime + SECOND})
        self.assertFalse(is_stale(str(self.file), state))

    def test_missing_file_is_stale(self):
        missing = str(self.root / "missing.c")
        state = BuildState({missing: self.mtime})
        self.assertTrue(is_stale(missing, state))

    def test_record_missing_file_keeps_state(self):
        missing = str(self.root / "missing.c")
        state = record(missing, BuildState({missing: self.mtime}))
        self.assertEqual(state.get(missing), self.mtime)
        self.assertNotIn(str(self.root / "other.c"), record(str(self.root / "other.c"), state))

    def test_record_never_goes_backwards(self):
        later = self.mtime + 5 * SECOND
        state = record(str(self.file), BuildState({str(self.file): later}))
        self.assertEqual(state.get(str(self.file)), later)

        touch(self.file, later + SECOND)
        record(str(self.file), state)
        self.assertEqual(state.get(str(self.file)), later + SECOND)

    def test_round_trip(self):
        path = self.root / "coyote.LOCK"
        state = record(str(self.file), BuildState(path=path))
        state.save()

        loaded = BuildState.read(path)
        self.assertEqual(loaded.last_modified, state.last_modified)
        self.assertEqual(loaded.path, path)
        self.assertFalse(is_stale(str(self.file), loaded))

    def test_memory_state_does_not_save(self):
        BuildState({"a": 1}).save()
        self.assertEqual(list(self.root.iterdir()), [self.file])

    def test_missing_or_empty_file_is_empty_state(self):
        path = self.root / "coyote.LOCK"
        self.assertEqual(len(BuildState.read(path)), 0)
        path.write_text("")
        self.assertEqual(len(BuildState.read(path)), 0)

    def test_malformed_state(self):
        path = self.root / "coyote.LOCK"
        for text in ["{ nope", "[]", '{"last_modified": []}', '{"last_modified": {"a": "1"}}']:
            path.write_text(text)
            with self.assertRaises(StateIOError):
                BuildState.read(path)

            state = BuildState.load(path)
            self.assertEqual(len(state), 0)
            self.assertEqual(state.path, path)

    def test_unwritable_state(self):
        state = BuildState({"a": 1}, self.root / "no" / "such" / "dir" / "coyote.LOCK")
        with self.assertRaises(StateIOError):
            state.save()

    def test_modified_time(self):
        self.assertEqual(modified_time(self.file), self.mtime)


# --------------------------------------------------------------------
if __name__ == "__main__":
    unittest.main()
