import typing
from collections import OrderedDict

from .configs import MultiConfigParser


def _format_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


class UnitConfig(MultiConfigParser):
    """The content of a systemd unit file.

    Sections are written in the order they were added, `Unit` always first
    and `Install` always last. Options whose value is `None` are skipped and
    list values become repeated directives.

    Examples:
    ---------

    >>> config = UnitConfig()
    >>> config.update_section('Unit', Description='Backups', After=None)
    >>> config.update_section('Install', WantedBy='multi-user.target')
    >>> print(config.render())
    [Unit]
    Description=Backups
    <BLANKLINE>
    [Install]
    WantedBy=multi-user.target
    <BLANKLINE>
    """
    section_name: typing.Optional[str] = None

    def __init__(self):
        super().__init__(default_section=None,
                         interpolation=None,
                         dict_type=OrderedDict,
                         strict=False
                         )
        self.optionxform = str
        self.add_section('Unit')
        if self.section_name:
            self.add_section(self.section_name)
        self.add_section('Install')

    def update_section(self,
                       name: str,
                       options: typing.Optional[typing.Mapping] = None,
                       **kw_options):
        """Adds or updates a section of the unit.

        Options can be given as a mapping, as keywords, or both. Options
        with the value `None` are left out.

        >>> config = ServiceConfig()
        >>> config.update_section('Service', {'Type': 'oneshot'},
        ...                       ExecStart=['/bin/sync', '/bin/backup'])
        >>> print(config.render())
        [Service]
        Type=oneshot
        ExecStart=/bin/sync
        ExecStart=/bin/backup
        <BLANKLINE>
        """
        if name not in self.sections():
            self._add_section_before_install(name)
        merged = dict(options or {})
        merged.update(kw_options)
        for option, value in merged.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                self.set(name, option,
                         [_format_value(val) for val in value],
                         multioption=True)
            else:
                self.set(name, option, _format_value(value))

    def _add_section_before_install(self, name):
        # keep [Install] as the last section
        install = self._sections.pop('Install', None)
        self.add_section(name)
        if install is not None:
            self._sections['Install'] = install
            self._sections.move_to_end('Install')


class ServiceConfig(UnitConfig):
    section_name = 'Service'


class TimerConfig(UnitConfig):
    section_name = 'Timer'


UNIT_TYPES = dict(
    service=ServiceConfig,
    timer=TimerConfig,
)


def unit_type(name: str):
    """The type of a unit, taken from the extension of its name

    >>> unit_type('db_backup.timer')
    'timer'
    """
    stem, _, extension = name.rpartition('.')
    if not stem or extension not in UNIT_TYPES:
        raise ValueError(f'"{name}" does not end in one of the supported'
                         f' unit types: {", ".join(UNIT_TYPES)}')
    return extension


def unit_config(name: str,
                unit_entry: typing.Optional[typing.Mapping] = None,
                service_entry: typing.Optional[typing.Mapping] = None,
                timer_entry: typing.Optional[typing.Mapping] = None,
                install_entry: typing.Optional[typing.Mapping] = None):
    """Build the config of the unit `name` from its section entries.

    Only the entry matching the unit type is used, i.e. `service_entry` for
    a `.service` and `timer_entry` for a `.timer`.

    >>> config = unit_config('db_backup.timer',
    ...                      timer_entry={'OnCalendar': 'daily'},
    ...                      install_entry={'WantedBy': 'timers.target'})
    >>> print(config.render())
    [Timer]
    OnCalendar=daily
    <BLANKLINE>
    [Install]
    WantedBy=timers.target
    <BLANKLINE>
    """
    _type = unit_type(name)
    config = UNIT_TYPES[_type]()
    type_entry = dict(service=service_entry, timer=timer_entry)[_type]
    config.update_section('Unit', unit_entry)
    config.update_section(config.section_name, type_entry)
    config.update_section('Install', install_entry)
    return config
