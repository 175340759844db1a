import os
import tempfile
import unittest

from sysdecl.catalog import Catalog
from sysdecl.errors import ManifestError, MissingTriggerError
from sysdecl.manifest import load, loads
from sysdecl.timer_wrapper import timer_wrapper
from sysdecl.tmpfile import tmpfile

MANIFEST = """
timer_wrappers:
  db_backup:
    ensure: present
    command: /usr/local/bin/backup
    user: backup
    on_calendar: "*-*-* 03:00:00"
    timer_overrides:
      Persistent: true
    service_unit_overrides:
      Description: Back up the database
  old_report:
    ensure: absent
tmpfiles:
  backup.conf:
    content: d /var/backups 0750 backup backup -
"""


class ManifestTest(unittest.TestCase):
    def test_same_catalog_as_direct_declarations(self):
        expected = Catalog()
        timer_wrapper(expected, 'db_backup', ensure='present',
                      command='/usr/local/bin/backup', user='backup',
                      on_calendar='*-*-* 03:00:00',
                      timer_overrides={'Persistent': True},
                      service_unit_overrides={
                          'Description': 'Back up the database'})
        timer_wrapper(expected, 'old_report', ensure='absent')
        tmpfile(expected, 'backup.conf',
                content='d /var/backups 0750 backup backup -')

        catalog = loads(MANIFEST)
        self.assertEqual(catalog.ordered(), expected.ordered())

    def test_load_file(self):
        with tempfile.TemporaryDirectory() as path:
            filename = os.path.join(path, 'site.yaml')
            with open(filename, 'w') as fobj:
                fobj.write(MANIFEST)
            catalog = load(filename)
        self.assertEqual(len(catalog), 8)

    def test_into_existing_catalog(self):
        catalog = Catalog()
        tmpfile(catalog, 'other.conf', content='x')
        loads(MANIFEST, catalog)
        self.assertEqual(len(catalog.resources('File')), 2)
        self.assertEqual(len(catalog.resources('Exec')), 1)

    def test_empty(self):
        self.assertEqual(len(loads('')), 0)
        self.assertEqual(len(loads('timer_wrappers:\n')), 0)

    def test_declaration_errors_propagate(self):
        with self.assertRaises(MissingTriggerError):
            loads('timer_wrappers: {job: {ensure: present, command: ls}}')

    def test_invalid(self):
        documents = (
            '- a list',
            'services: {}',
            'timer_wrappers: [job]',
            'timer_wrappers: {job: [ensure]}',
            'timer_wrappers: {job: {ensure: absent, schedule: daily}}',
            'timer_wrappers: {job: {command: ls}}',
            'tmpfiles: {a.conf: {mode: "0644"}}',
            'timer_wrappers: {job: {ensure: absent, service_overrides: nice}}',
            'timer_wrappers: {job: {ensure: absent, timer_unit_overrides: [a]}}',
            'timer_wrappers: {job: {ensure: [absent}',
        )
        for document in documents:
            with self.subTest(document=document):
                with self.assertRaises(ManifestError):
                    loads(document)


if __name__ == '__main__':
    unittest.main()
