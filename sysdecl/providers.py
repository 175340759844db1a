"""Bring the host in line with the resources of a catalog.

Each resource type has a provider with an `apply` coroutine. It compares
the resource with the current state, changes what differs, and tells
whether something changed. In noop mode only the comparison is done.

The `Applier` walks a catalog in order and hands each resource to its
provider.
"""
import asyncio
import logging
import os
import stat
import tempfile
import typing
import warnings
from dataclasses import dataclass, field

from .commands import Systemctl, async_run
from .constants import (
    SYSTEM_UNIT_PATH,
    UNIT_FILE_MODE,
    UNIT_SEARCH_PATHS,
    USER_UNIT_PATH,
)
from .errors import CommandError

logger = logging.getLogger(__name__)


def read_file(path: str):
    """Content of the file at `path`, `None` if there is none"""
    try:
        with open(path) as fobj:
            return fobj.read()
    except FileNotFoundError:
        return None


def file_mode(path: str):
    return stat.S_IMODE(os.stat(path).st_mode)


def write_file(path: str, content: str, mode: int):
    """Replace the file at `path` atomically"""
    fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path),
                                    prefix=f'.{os.path.basename(path)}.')
    try:
        with os.fdopen(fd, 'w') as fobj:
            fobj.write(content)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise


class UnitFileProvider:
    def __init__(self, systemctl: Systemctl, path: typing.Optional[str] = None):
        self.systemctl = systemctl
        if path is None:
            path = (USER_UNIT_PATH if systemctl.manager == '--user'
                    else SYSTEM_UNIT_PATH)
        self.path = path

    @property
    def path(self):
        """The directory unit files are written to.

        You might use `'~'` in the path, it will be replaced by the user's
        home directory, so the path `'~/.config/systemd/user'` is a valid path.
        """
        return os.path.expanduser(self._path)

    @path.setter
    def path(self, path: str):
        if path not in UNIT_SEARCH_PATHS:
            warnings.warn(f'systemd does not load units from {path} by'
                          ' default', Warning)
        self._path = path

    def filename(self, resource):
        return os.path.join(self.path, resource.title)

    async def apply(self, resource, noop: bool = False):
        filename = self.filename(resource)
        current = read_file(filename)
        if resource.ensure == 'absent':
            if current is None:
                return False
            logger.info('%s: removing %s', resource.ref, filename)
            if not noop:
                os.remove(filename)
                await self.systemctl.daemon_reload()
            return True

        content = resource.render()
        if current == content and file_mode(filename) == UNIT_FILE_MODE:
            return False
        logger.info('%s: writing %s', resource.ref, filename)
        if not noop:
            os.makedirs(self.path, exist_ok=True)
            write_file(filename, content, UNIT_FILE_MODE)
            await self.systemctl.daemon_reload()
        return True


class ServiceProvider:
    def __init__(self, systemctl: Systemctl):
        self.systemctl = systemctl

    async def apply(self, resource, noop: bool = False):
        unit = resource.title
        changed = False
        running = await self.systemctl.is_active(unit)
        if running != resource.ensure:
            action = 'start' if resource.ensure else 'stop'
            logger.info('%s: %s', resource.ref, action)
            if not noop:
                await getattr(self.systemctl, action)(unit)
            changed = True
        enabled = await self.systemctl.is_enabled(unit)
        if enabled != resource.enable:
            action = 'enable' if resource.enable else 'disable'
            logger.info('%s: %s', resource.ref, action)
            if not noop:
                await getattr(self.systemctl, action)(unit)
            changed = True
        return changed


class FileProvider:
    async def apply(self, resource, noop: bool = False):
        path = resource.path
        current = read_file(path)
        if resource.ensure == 'absent':
            if current is None:
                return False
            logger.info('%s: removing', resource.ref)
            if not noop:
                os.remove(path)
            return True

        content = resource.content
        if content is None:
            content = '' if current is None else current
        if current == content:
            if file_mode(path) == resource.mode:
                return False
            logger.info('%s: mode set to %s', resource.ref,
                        oct(resource.mode))
            if not noop:
                os.chmod(path, resource.mode)
            return True
        logger.info('%s: writing content', resource.ref)
        if not noop:
            write_file(path, content, resource.mode)
        return True


class ExecProvider:
    def __init__(self, runner=async_run):
        self.runner = runner

    async def apply(self, resource, noop: bool = False,
                    refresh: bool = False):
        if resource.refreshonly and not refresh:
            return False
        logger.info('%s: running %s', resource.ref, ' '.join(resource.command))
        if noop:
            return True
        result = await self.runner(list(resource.command))
        if result.returncode != 0:
            raise CommandError(resource.command, result.returncode,
                               result.stderr)
        return True


@dataclass
class Report:
    """What applying a catalog did (or would have done in noop mode)"""
    noop: bool = False
    applied: typing.List[str] = field(default_factory=list)
    changed: typing.List[str] = field(default_factory=list)

    @property
    def unchanged(self):
        return [ref for ref in self.applied if ref not in self.changed]


class Applier:
    """Apply the resources of a catalog one after the other.

    Errors of the providers (a failing systemctl call, a file that cannot
    be written) are not caught; resources after the failing one are left
    untouched.
    """
    def __init__(self,
                 catalog,
                 manager: str = '--system',
                 noop: bool = False,
                 runner=async_run,
                 unit_path: typing.Optional[str] = None):
        self.catalog = catalog
        self.noop = noop
        systemctl = Systemctl(manager, runner=runner)
        self.providers = dict(
            UnitFile=UnitFileProvider(systemctl, path=unit_path),
            Service=ServiceProvider(systemctl),
            File=FileProvider(),
            Exec=ExecProvider(runner=runner),
        )

    async def apply(self):
        report = Report(noop=self.noop)
        for resource in self.catalog.ordered():
            provider = self.providers[resource.type]
            if resource.type == 'Exec':
                refresh = bool(self.catalog.notified_by(resource)
                               & set(report.changed))
                changed = await provider.apply(resource, noop=self.noop,
                                               refresh=refresh)
            else:
                changed = await provider.apply(resource, noop=self.noop)
            report.applied.append(resource.ref)
            if changed:
                report.changed.append(resource.ref)
            else:
                logger.debug('%s: in sync', resource.ref)
        logger.info('Applied %d resources, %d changed%s',
                    len(report.applied), len(report.changed),
                    ' (noop)' if self.noop else '')
        return report


def apply_catalog(catalog, **kwargs):
    """Apply `catalog` and return the `Report`, see `Applier`"""
    return asyncio.run(Applier(catalog, **kwargs).apply())
