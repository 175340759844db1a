"""Load declarations from a YAML manifest.

A manifest maps each kind of declaration to the declarations of that kind,
keyed by title::

    timer_wrappers:
      db_backup:
        ensure: present
        command: /usr/local/bin/backup
        on_calendar: daily
    tmpfiles:
      backup.conf:
        content: "d /var/backups 0750 root root -"

Examples:
---------

>>> catalog = loads('''
... tmpfiles:
...   backup.conf:
...     content: d /var/backups 0750 root root -
... ''')
>>> [resource.ref for resource in catalog.ordered()]
['File[/etc/tmpfiles.d/backup.conf]', 'Exec[systemd-tmpfiles]']
"""
import logging
import typing

import yaml

from .catalog import Catalog
from .errors import ManifestError
from .timer_wrapper import TimerWrapper
from .tmpfile import Tmpfile

logger = logging.getLogger(__name__)

DECLARATIONS = dict(
    timer_wrappers=TimerWrapper,
    tmpfiles=Tmpfile,
)


def _declarations(data):
    if data is None:
        return
    if not isinstance(data, dict):
        raise ManifestError('A manifest must be a mapping, got'
                            f' {type(data).__name__}')
    unknown = set(data) - set(DECLARATIONS)
    if unknown:
        raise ManifestError(f'Unknown declaration kinds: {sorted(unknown)}.'
                            f' Expected any of {list(DECLARATIONS)}')
    for kind, declared in data.items():
        declared = declared or {}
        if not isinstance(declared, dict):
            raise ManifestError(f'{kind} must map titles to parameters')
        for title, params in declared.items():
            params = params or {}
            if not isinstance(params, dict):
                raise ManifestError(f'{kind} {title!r}: parameters must be'
                                    ' a mapping')
            yield kind, str(title), params


def build_catalog(data: typing.Optional[dict],
                  catalog: typing.Optional[Catalog] = None):
    """Declare everything in the parsed manifest `data` into a catalog"""
    if catalog is None:
        catalog = Catalog()
    for kind, title, params in _declarations(data):
        declaration = DECLARATIONS[kind]
        unknown = set(params) - set(declaration.PARAMETERS)
        if unknown:
            raise ManifestError(f'{kind} {title!r}: unknown parameters'
                                f' {sorted(unknown)}')
        missing = set(declaration.REQUIRED) - set(params)
        if missing:
            raise ManifestError(f'{kind} {title!r}: missing parameters'
                                f' {sorted(missing)}')
        for param in declaration.MAPPINGS:
            if not isinstance(params.get(param) or {}, dict):
                raise ManifestError(f'{kind} {title!r}: {param} must map'
                                    ' directives to values')
        declaration(title, **params).declare(catalog)
    logger.debug('Loaded %d resources', len(catalog))
    return catalog


def loads(text: str, catalog: typing.Optional[Catalog] = None):
    """Build a catalog from a YAML string"""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ManifestError(f'Invalid YAML: {err}') from err
    return build_catalog(data, catalog)


def load(path: str, catalog: typing.Optional[Catalog] = None):
    """Build a catalog from the YAML file at `path`"""
    logger.info('Loading manifest %s', path)
    with open(path, 'r') as f:
        return loads(f.read(), catalog)
