"""Run a command on a schedule through a systemd timer and service pair.

A `TimerWrapper` expands into three resources:

- the ``.service`` unit file running the command once (``Type=oneshot``)
- the ``.timer`` unit file triggering it, installed into ``timers.target``
- the run and enable state of the timer

Examples:
---------

>>> from sysdecl.catalog import Catalog
>>> catalog = Catalog()
>>> _ = timer_wrapper(catalog, 'db_backup', ensure='present',
...                   command='/usr/local/bin/backup', on_calendar='daily')
>>> for resource in catalog.ordered():
...     print(resource.ref)
UnitFile[db_backup.service]
UnitFile[db_backup.timer]
Service[db_backup.timer]
>>> print(catalog['UnitFile[db_backup.service]'].render())
[Service]
ExecStart=/usr/local/bin/backup
Type=oneshot
<BLANKLINE>

Removing the timer tears it down the other way around:

>>> catalog = Catalog()
>>> _ = timer_wrapper(catalog, 'db_backup', ensure='absent')
>>> for resource in catalog.ordered():
...     print(resource.ref)
Service[db_backup.timer]
UnitFile[db_backup.timer]
UnitFile[db_backup.service]
"""
import logging
import typing

from .constants import ENSURE_VALUES, SERVICE_TYPE, TIMER_WANTED_BY
from .errors import (
    InvalidEnsureError,
    MissingCommandError,
    MissingTriggerError,
)
from .escape import unit_name
from .resources import Service, UnitFile

logger = logging.getLogger(__name__)

# parameter name -> [Timer] directive
TIMER_DIRECTIVES = (
    ('on_active_sec', 'OnActiveSec'),
    ('on_boot_sec', 'OnBootSec'),
    ('on_start_up_sec', 'OnStartupSec'),
    ('on_unit_active_sec', 'OnUnitActiveSec'),
    ('on_unit_inactive_sec', 'OnUnitInactiveSec'),
    ('on_calendar', 'OnCalendar'),
)

Entry = typing.Optional[typing.Mapping[str, typing.Any]]


def merge_entries(defaults: typing.Mapping, overrides: Entry = None):
    """Merge `overrides` on top of `defaults`.

    Overrides win on collision; an override set to `None` removes the
    directive.

    >>> merge_entries({'Type': 'oneshot', 'User': 'backup'},
    ...               {'User': None, 'Nice': 10})
    {'Type': 'oneshot', 'Nice': 10}
    """
    merged = dict(defaults)
    merged.update(overrides or {})
    return {key: value for key, value in merged.items() if value is not None}


class TimerWrapper:
    REQUIRED = ('ensure',)
    PARAMETERS = (
        'ensure', 'command', 'user',
        *(param for param, _ in TIMER_DIRECTIVES),
        'service_overrides', 'timer_overrides',
        'service_unit_overrides', 'timer_unit_overrides',
    )
    MAPPINGS = (
        'service_overrides', 'timer_overrides',
        'service_unit_overrides', 'timer_unit_overrides',
    )

    def __init__(self,
                 title: str,
                 ensure: str,
                 command: typing.Optional[str] = None,
                 user: typing.Optional[str] = None,
                 on_active_sec: typing.Optional[str] = None,
                 on_boot_sec: typing.Optional[str] = None,
                 on_start_up_sec: typing.Optional[str] = None,
                 on_unit_active_sec: typing.Optional[str] = None,
                 on_unit_inactive_sec: typing.Optional[str] = None,
                 on_calendar: typing.Optional[str] = None,
                 service_overrides: Entry = None,
                 timer_overrides: Entry = None,
                 service_unit_overrides: Entry = None,
                 timer_unit_overrides: Entry = None,
                 ):
        """Declare a command run by a systemd timer.

        Parameters:
        -----------
        :param: title
           the resource title, escaped to name the units
        :param: ensure
           `'present'` to install and start the timer, `'absent'` to stop
           it and remove both units
        :param: command
           the `ExecStart` of the service, required if present
        :param: user
           the `User` running the command
        :param: on_*
           the scheduling directives of the timer, at least one is required
           if present
        :param: service_overrides, timer_overrides
           directives merged on top of the `[Service]` and `[Timer]`
           sections
        :param: service_unit_overrides, timer_unit_overrides
           the `[Unit]` section of the service and timer
        """
        if ensure not in ENSURE_VALUES:
            raise InvalidEnsureError(
                f'{title}: ensure must be one of {", ".join(ENSURE_VALUES)},'
                f' not {ensure!r}')
        self.title = title
        self.ensure = ensure
        self.command = command
        self.user = user
        self.on_active_sec = on_active_sec
        self.on_boot_sec = on_boot_sec
        self.on_start_up_sec = on_start_up_sec
        self.on_unit_active_sec = on_unit_active_sec
        self.on_unit_inactive_sec = on_unit_inactive_sec
        self.on_calendar = on_calendar
        self.service_overrides = service_overrides
        self.timer_overrides = timer_overrides
        self.service_unit_overrides = service_unit_overrides
        self.timer_unit_overrides = timer_unit_overrides

    @property
    def present(self):
        return self.ensure == 'present'

    @property
    def unit_name(self):
        return unit_name(self.title)

    @property
    def service_unit(self):
        return f'{self.unit_name}.service'

    @property
    def timer_unit(self):
        return f'{self.unit_name}.timer'

    def timer_spec(self):
        """The scheduling directives that are set

        Empty values are left out, `OnCalendar=` would reset the schedule
        instead of setting one.

        >>> TimerWrapper('t', 'absent', on_boot_sec='5min').timer_spec()
        {'OnBootSec': '5min'}
        """
        spec = {directive: getattr(self, param)
                for param, directive in TIMER_DIRECTIVES}
        return {key: value for key, value in spec.items()
                if value not in (None, '')}

    def service_spec(self):
        spec = dict(ExecStart=self.command, User=self.user, Type=SERVICE_TYPE)
        return {key: value for key, value in spec.items()
                if value not in (None, '')}

    def validate(self):
        """Check the parameters a present timer needs"""
        if not self.present:
            return
        if not self.timer_spec():
            raise MissingTriggerError(
                f'{self.title}: at least one of '
                f'{", ".join(param for param, _ in TIMER_DIRECTIVES)}'
                ' is required when ensure is present')
        if not self.command:
            raise MissingCommandError(
                f'{self.title}: command is required when ensure is present')

    def resources(self):
        """The service unit, timer unit and timer service resources"""
        self.validate()
        service_unit = UnitFile(
            self.service_unit,
            ensure=self.ensure,
            unit_entry=dict(self.service_unit_overrides)
            if self.service_unit_overrides else None,
            service_entry=merge_entries(self.service_spec(),
                                        self.service_overrides),
        )
        timer_unit = UnitFile(
            self.timer_unit,
            ensure=self.ensure,
            unit_entry=dict(self.timer_unit_overrides)
            if self.timer_unit_overrides else None,
            timer_entry=merge_entries(self.timer_spec(),
                                      self.timer_overrides),
            install_entry={'WantedBy': TIMER_WANTED_BY},
        )
        timer_service = Service(
            self.timer_unit,
            ensure=self.present,
            enable=self.present,
        )
        return service_unit, timer_unit, timer_service

    def declare(self, catalog):
        """Add the resources and their ordering to `catalog`.

        Returns the service unit, timer unit and timer service resources.
        """
        service_unit, timer_unit, timer_service = self.resources()
        for resource in (service_unit, timer_unit, timer_service):
            catalog.add(resource)
        if self.present:
            catalog.chain(service_unit, timer_unit, timer_service)
        else:
            catalog.chain(timer_service, timer_unit, service_unit)
        logger.debug('Declared timer %s (%s)', self.unit_name, self.ensure)
        return service_unit, timer_unit, timer_service


def timer_wrapper(catalog, title: str, **params):
    """Declare a `TimerWrapper` in `catalog`"""
    return TimerWrapper(title, **params).declare(catalog)
