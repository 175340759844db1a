"""Drop-in configuration for systemd-tmpfiles.

>>> from sysdecl.catalog import Catalog
>>> catalog = Catalog()
>>> tmpfile = Tmpfile('random_tmpfile.conf', content='random stuff')
>>> _ = tmpfile.declare(catalog)
>>> for resource in catalog.ordered():
...     print(resource.ref)
File[/etc/tmpfiles.d/random_tmpfile.conf]
Exec[systemd-tmpfiles]
>>> oct(catalog['File[/etc/tmpfiles.d/random_tmpfile.conf]'].mode)
'0o444'
"""
import logging
import os
import re
import typing

from .constants import (
    FILE_ENSURE_VALUES,
    TMPFILE_MODE,
    TMPFILES_COMMAND,
    TMPFILES_PATH,
)
from .errors import (
    InvalidDropinNameError,
    InvalidEnsureError,
    InvalidPathError,
)
from .resources import Exec, File

logger = logging.getLogger(__name__)

DROPIN_PATTERN = re.compile(r'^[^/]+\.conf$')

TMPFILES_EXEC = 'systemd-tmpfiles'


def validate_dropin(filename: str):
    """Check that `filename` is a valid drop-in file name

    >>> validate_dropin('10-cleanup.conf')
    '10-cleanup.conf'
    >>> validate_dropin('test.badtype')
    Traceback (most recent call last):
    ...
    sysdecl.errors.InvalidDropinNameError: 'test.badtype' expects a match for Dropin (^[^/]+\\.conf$)
    """
    if not DROPIN_PATTERN.match(filename):
        raise InvalidDropinNameError(
            f'{filename!r} expects a match for Dropin'
            f' ({DROPIN_PATTERN.pattern})')
    return filename


def tmpfiles_exec():
    """The command that applies tmpfiles.d changes, run on refresh"""
    return Exec(TMPFILES_EXEC, command=TMPFILES_COMMAND, refreshonly=True)


class Tmpfile:
    REQUIRED = ()
    PARAMETERS = ('ensure', 'filename', 'path', 'content')
    MAPPINGS = ()

    def __init__(self,
                 title: str,
                 content: typing.Optional[str] = None,
                 filename: typing.Optional[str] = None,
                 ensure: str = 'file',
                 path: str = TMPFILES_PATH,
                 ):
        """Declare a file in the tmpfiles.d directory.

        The file is named after `title`, unless `filename` is given. Either
        way the name must look like ``NAME.conf``.
        """
        if ensure not in FILE_ENSURE_VALUES:
            raise InvalidEnsureError(
                f'{title}: ensure must be one of'
                f' {", ".join(FILE_ENSURE_VALUES)}, not {ensure!r}')
        if not os.path.isabs(path):
            raise InvalidPathError(f'{title}: path "{path}" is not absolute')
        self.title = title
        self.content = content
        self.filename = filename or title
        self.ensure = 'file' if ensure == 'present' else ensure
        self.path = path

    @property
    def file_path(self):
        return os.path.join(self.path, self.filename)

    def validate(self):
        validate_dropin(self.filename)

    def resources(self):
        self.validate()
        return File(self.file_path,
                    ensure=self.ensure,
                    content=self.content,
                    mode=TMPFILE_MODE)

    def declare(self, catalog):
        """Add the file to `catalog`, notifying systemd-tmpfiles.

        Returns the file resource.
        """
        file = catalog.add(self.resources())
        refresh = catalog.ensure_resource(tmpfiles_exec())
        catalog.notify(file, refresh)
        logger.debug('Declared tmpfile %s (%s)', file.path, self.ensure)
        return file


def tmpfile(catalog, title: str, **params):
    """Declare a `Tmpfile` in `catalog`"""
    return Tmpfile(title, **params).declare(catalog)
