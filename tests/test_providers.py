import asyncio
import os
import stat
import tempfile
import unittest
import warnings

from sysdecl.catalog import Catalog
from sysdecl.commands import Systemctl
from sysdecl.errors import CommandError
from sysdecl.providers import (
    Applier,
    FileProvider,
    ServiceProvider,
    UnitFileProvider,
    apply_catalog,
)
from sysdecl.resources import File, Service, UnitFile
from sysdecl.timer_wrapper import timer_wrapper
from sysdecl.tmpfile import tmpfile

from .fakes import FakeRunner


def mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


class ProviderTestCase(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.tmpdir = self._tmpdir.name
        self.unit_path = os.path.join(self.tmpdir, 'system')
        self.tmpfiles_path = os.path.join(self.tmpdir, 'tmpfiles.d')
        os.makedirs(self.tmpfiles_path)
        self.runner = FakeRunner()

    def apply(self, catalog, **kwargs):
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            return apply_catalog(catalog, runner=self.runner,
                                 unit_path=self.unit_path, **kwargs)

    def unit_file(self, name):
        return os.path.join(self.unit_path, name)


class TimerApplyTest(ProviderTestCase):
    def declare(self, ensure='present'):
        catalog = Catalog()
        timer_wrapper(catalog, 'db_backup', ensure=ensure,
                      command='/usr/local/bin/backup', on_calendar='daily')
        return catalog

    def test_present(self):
        report = self.apply(self.declare())
        self.assertEqual(report.changed, [
            'UnitFile[db_backup.service]',
            'UnitFile[db_backup.timer]',
            'Service[db_backup.timer]',
        ])
        with open(self.unit_file('db_backup.service')) as fobj:
            self.assertEqual(fobj.read(),
                             '[Service]\n'
                             'ExecStart=/usr/local/bin/backup\n'
                             'Type=oneshot\n')
        with open(self.unit_file('db_backup.timer')) as fobj:
            content = fobj.read()
        self.assertIn('OnCalendar=daily\n', content)
        self.assertIn('WantedBy=timers.target\n', content)
        self.assertEqual(mode(self.unit_file('db_backup.timer')), 0o444)
        self.assertEqual(self.runner.active, {'db_backup.timer'})
        self.assertEqual(self.runner.enabled, {'db_backup.timer'})
        # the timer is only enabled once both units are known to systemd
        reloads = [index for index, call in enumerate(self.runner.calls)
                   if 'daemon-reload' in call]
        enable = self.runner.calls.index(
            ['systemctl', '--system', 'enable', 'db_backup.timer'])
        self.assertEqual(len(reloads), 2)
        self.assertLess(max(reloads), enable)

    def test_second_apply_changes_nothing(self):
        self.apply(self.declare())
        calls = len(self.runner.calls)
        report = self.apply(self.declare())
        self.assertEqual(report.changed, [])
        self.assertEqual(len(report.unchanged), 3)
        self.assertFalse(any('daemon-reload' in call
                             for call in self.runner.calls[calls:]))

    def test_changed_unit_is_rewritten(self):
        self.apply(self.declare())
        catalog = Catalog()
        timer_wrapper(catalog, 'db_backup', ensure='present',
                      command='/usr/local/bin/backup', on_calendar='weekly')
        report = self.apply(catalog)
        self.assertEqual(report.changed, ['UnitFile[db_backup.timer]'])
        with open(self.unit_file('db_backup.timer')) as fobj:
            self.assertIn('OnCalendar=weekly\n', fobj.read())

    def test_absent(self):
        self.apply(self.declare())
        calls = len(self.runner.calls)
        report = self.apply(self.declare('absent'))
        self.assertEqual(report.changed, [
            'Service[db_backup.timer]',
            'UnitFile[db_backup.timer]',
            'UnitFile[db_backup.service]',
        ])
        self.assertFalse(os.path.exists(self.unit_file('db_backup.timer')))
        self.assertFalse(os.path.exists(self.unit_file('db_backup.service')))
        self.assertEqual(self.runner.active, set())
        self.assertEqual(self.runner.enabled, set())
        # stopped and disabled before the unit files go away
        self.assertEqual(self.runner.calls[calls:calls + 4], [
            ['systemctl', '--system', 'is-active', 'db_backup.timer'],
            ['systemctl', '--system', 'stop', 'db_backup.timer'],
            ['systemctl', '--system', 'is-enabled', 'db_backup.timer'],
            ['systemctl', '--system', 'disable', 'db_backup.timer'],
        ])

    def test_absent_on_clean_host(self):
        report = self.apply(self.declare('absent'))
        self.assertEqual(report.changed, [])

    def test_noop(self):
        report = self.apply(self.declare(), noop=True)
        self.assertTrue(report.noop)
        self.assertEqual(len(report.changed), 3)
        self.assertFalse(os.path.exists(self.unit_path))
        self.assertEqual(self.runner.active, set())
        self.assertEqual(
            {call[2] for call in self.runner.calls},
            {'is-active', 'is-enabled'})

    def test_failing_systemctl(self):
        self.runner.failing.add('enable')
        with self.assertRaises(CommandError) as context:
            self.apply(self.declare())
        self.assertEqual(context.exception.returncode, 1)
        self.assertIn('enable', str(context.exception))

    def test_user_manager(self):
        catalog = self.declare()
        self.apply(catalog, manager='--user')
        self.assertIn(['systemctl', '--user', 'start', 'db_backup.timer'],
                      self.runner.calls)


class TmpfileApplyTest(ProviderTestCase):
    def test_file_and_refresh(self):
        catalog = Catalog()
        tmpfile(catalog, 'random_tmpfile.conf', content='random stuff',
                path=self.tmpfiles_path)
        report = self.apply(catalog)
        path = os.path.join(self.tmpfiles_path, 'random_tmpfile.conf')
        self.assertEqual(report.changed, [f'File[{path}]',
                                          'Exec[systemd-tmpfiles]'])
        with open(path) as fobj:
            self.assertIn('random stuff', fobj.read())
        self.assertEqual(mode(path), 0o444)
        self.assertIn(['systemd-tmpfiles', '--create'], self.runner.calls)

    def test_no_refresh_without_change(self):
        catalog = Catalog()
        tmpfile(catalog, 'random_tmpfile.conf', content='random stuff',
                path=self.tmpfiles_path)
        self.apply(catalog)
        self.runner.calls.clear()
        report = self.apply(catalog)
        self.assertEqual(report.changed, [])
        self.assertEqual(self.runner.calls, [])

    def test_failing_refresh(self):
        self.runner.failing.add('systemd-tmpfiles')
        catalog = Catalog()
        tmpfile(catalog, 'a.conf', content='x', path=self.tmpfiles_path)
        with self.assertRaises(CommandError):
            self.apply(catalog)


class FileProviderTest(ProviderTestCase):
    def run_provider(self, resource, noop=False):
        return asyncio.run(FileProvider().apply(resource, noop=noop))

    def test_mode_is_corrected(self):
        path = os.path.join(self.tmpdir, 'a.conf')
        with open(path, 'w') as fobj:
            fobj.write('x')
        os.chmod(path, 0o644)
        self.assertTrue(self.run_provider(File(path, content='x')))
        self.assertEqual(mode(path), 0o444)
        self.assertFalse(self.run_provider(File(path, content='x')))

    def test_unmanaged_content(self):
        path = os.path.join(self.tmpdir, 'a.conf')
        self.assertTrue(self.run_provider(File(path)))
        with open(path) as fobj:
            self.assertEqual(fobj.read(), '')

    def test_absent(self):
        path = os.path.join(self.tmpdir, 'a.conf')
        self.run_provider(File(path, content='x'))
        self.assertTrue(self.run_provider(File(path, ensure='absent'),
                                          noop=True))
        self.assertTrue(os.path.exists(path))
        self.assertTrue(self.run_provider(File(path, ensure='absent')))
        self.assertFalse(os.path.exists(path))
        self.assertFalse(self.run_provider(File(path, ensure='absent')))

    def test_missing_directory_is_an_error(self):
        path = os.path.join(self.tmpdir, 'missing', 'a.conf')
        with self.assertRaises(OSError):
            self.run_provider(File(path, content='x'))


class UnitFileProviderTest(unittest.TestCase):
    def test_default_paths(self):
        system = UnitFileProvider(Systemctl('--system'))
        self.assertEqual(system.path, '/etc/systemd/system')
        user = UnitFileProvider(Systemctl('--user'))
        self.assertEqual(user.path,
                         os.path.expanduser('~/.config/systemd/user'))

    def test_unusual_path_warns(self):
        with self.assertWarns(Warning):
            UnitFileProvider(Systemctl(), path='/tmp/units')

    def test_unknown_manager(self):
        with self.assertRaises(AssertionError):
            Systemctl('--global')


class ServiceProviderTest(unittest.TestCase):
    def test_only_differences_are_acted_on(self):
        runner = FakeRunner(active={'a.timer'})
        provider = ServiceProvider(Systemctl(runner=runner))
        changed = asyncio.run(provider.apply(Service('a.timer')))
        self.assertTrue(changed)
        self.assertEqual(runner.enabled, {'a.timer'})
        self.assertNotIn(['systemctl', '--system', 'start', 'a.timer'],
                         runner.calls)


class ApplierTest(unittest.TestCase):
    def test_stops_at_first_error(self):
        runner = FakeRunner(failing={'start'})
        catalog = Catalog()
        first = catalog.add(Service('a.timer'))
        catalog.add(Service('b.timer'))
        with self.assertRaises(CommandError):
            asyncio.run(Applier(catalog, runner=runner).apply())
        units = {call[3] for call in runner.calls}
        self.assertEqual(units, {first.title})


if __name__ == '__main__':
    unittest.main()
