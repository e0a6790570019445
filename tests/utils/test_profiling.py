import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from kvdump.utils.profiling import PROFILE_ENVIRONMENT_VARIABLE, get_profile_dir, profile_main


class ProfilingTest(unittest.TestCase):

    def test_disabled_without_variable(self):
        with mock.patch.dict(os.environ, {PROFILE_ENVIRONMENT_VARIABLE: ''}):
            self.assertIsNone(get_profile_dir())

            calls = []

            @profile_main
            def entry(value):
                calls.append(value)
                return value * 2

            self.assertEqual(4, entry(2))
            self.assertEqual([2], calls)

    def test_session_directory_name(self):
        """The session directory is named {timestamp_ms}_{pid}."""
        with mock.patch.dict(os.environ, {PROFILE_ENVIRONMENT_VARIABLE: '/tmp/kvdump-profile'}):
            result = get_profile_dir()

        self.assertEqual(Path('/tmp/kvdump-profile'), result.parent)
        timestamp, pid = result.name.split('_')
        self.assertTrue(timestamp.isdigit())
        self.assertEqual(str(os.getpid()), pid)

    def test_writes_profile(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, {PROFILE_ENVIRONMENT_VARIABLE: tmpdir}):
                @profile_main
                def entry():
                    return 'done'

                self.assertEqual('done', entry())

            profiles = list(Path(tmpdir).glob('*/main_*.prof'))
            self.assertEqual(1, len(profiles))
            self.assertTrue(profiles[0].name.startswith(f"main_{os.getpid()}_"))

    def test_profile_written_on_exception(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, {PROFILE_ENVIRONMENT_VARIABLE: tmpdir}):
                @profile_main
                def entry():
                    raise SystemExit(3)

                with self.assertRaises(SystemExit):
                    entry()

            self.assertEqual(1, len(list(Path(tmpdir).glob('*/*.prof'))))


if __name__ == '__main__':
    unittest.main()
