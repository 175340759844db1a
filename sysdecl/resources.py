"""Resources a declaration expands into.

A resource describes the desired state of one thing on the host. It is
identified within a catalog by its reference, ``Type[title]``.
"""
import os
import typing
from dataclasses import dataclass, field
from typing import ClassVar

from .constants import (
    ENSURE_VALUES,
    FILE_ENSURE_VALUES,
    TMPFILE_MODE,
)
from .errors import InvalidEnsureError
from .unit_configs import unit_config, unit_type


def reference(type: str, title: str):
    """Reference of a resource, as used for ordering edges

    >>> reference('Service', 'db_backup.timer')
    'Service[db_backup.timer]'
    """
    return f'{type}[{title}]'


def _check_ensure(ensure, allowed):
    if ensure not in allowed:
        raise InvalidEnsureError(
            f'ensure must be one of {", ".join(allowed)}, not {ensure!r}')


@dataclass(frozen=True)
class Resource:
    type: ClassVar[str] = 'Resource'

    title: str

    @property
    def ref(self):
        return reference(self.type, self.title)

    def __str__(self):
        return self.ref


@dataclass(frozen=True)
class UnitFile(Resource):
    """A unit file, named by its title (e.g. ``db_backup.timer``).

    The entries hold the directives of the ``[Unit]``, ``[Service]`` or
    ``[Timer]`` and ``[Install]`` sections. An entry left as `None` is not
    written at all.
    """
    type: ClassVar[str] = 'UnitFile'

    ensure: str = 'present'
    unit_entry: typing.Optional[dict] = None
    service_entry: typing.Optional[dict] = None
    timer_entry: typing.Optional[dict] = None
    install_entry: typing.Optional[dict] = None

    def __post_init__(self):
        _check_ensure(self.ensure, ENSURE_VALUES)
        unit_type(self.title)

    @property
    def unit_type(self):
        return unit_type(self.title)

    def config(self):
        """The `UnitConfig` holding the content of this unit file"""
        return unit_config(self.title,
                           unit_entry=self.unit_entry,
                           service_entry=self.service_entry,
                           timer_entry=self.timer_entry,
                           install_entry=self.install_entry)

    def render(self):
        return self.config().render()


@dataclass(frozen=True)
class Service(Resource):
    """Run and enable state of a unit.

    `ensure` tells whether the unit should be running, `enable` whether it
    should be started through its install section.
    """
    type: ClassVar[str] = 'Service'

    ensure: bool = True
    enable: bool = True


@dataclass(frozen=True)
class File(Resource):
    """A plain file, its title is the absolute path."""
    type: ClassVar[str] = 'File'

    ensure: str = 'file'
    content: typing.Optional[str] = None
    mode: int = TMPFILE_MODE

    def __post_init__(self):
        _check_ensure(self.ensure, FILE_ENSURE_VALUES)
        if not os.path.isabs(self.title):
            raise ValueError(f'"{self.title}" is not an absolute path')

    @property
    def path(self):
        return self.title


@dataclass(frozen=True)
class Exec(Resource):
    """A command; with `refreshonly` it only runs when notified."""
    type: ClassVar[str] = 'Exec'

    command: typing.Tuple[str, ...] = field(default=())
    refreshonly: bool = False

    def __post_init__(self):
        if not self.command:
            raise ValueError(f'{self.ref} needs a command to run')
        object.__setattr__(self, 'command', tuple(self.command))
