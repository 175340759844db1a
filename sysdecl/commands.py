import asyncio
import logging
import typing
from types import SimpleNamespace

from .constants import MANAGERS
from .errors import CommandError

logger = logging.getLogger(__name__)


async def async_run(args: typing.Sequence[str],
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    encoding='utf-8'):
    """Run a command asynchronously

    Returns:

    a namespace with `args`, `returncode`, `stdout` and `stderr`

    Example:
    --------
    >>> result = asyncio.run(async_run(['echo', 'hello']))
    >>> result.returncode, result.stdout
    (0, 'hello\\n')
    """
    logger.debug('Running %s', ' '.join(args))
    proc = await asyncio.create_subprocess_exec(
        *args, stdout=stdout, stderr=stderr
    )
    out, err = await proc.communicate()
    return SimpleNamespace(
        args=list(args),
        returncode=proc.returncode,
        stdout=out.decode(encoding) if out is not None else '',
        stderr=err.decode(encoding) if err is not None else '',
    )


class Systemctl:
    """Runs systemctl commands against the system or the user manager.

    The command runner can be replaced, e.g. to record the commands instead
    of running them:

    >>> async def echo(args):
    ...     print(' '.join(args))
    ...     return SimpleNamespace(returncode=0, stdout='', stderr='')
    >>> systemctl = Systemctl('--user', runner=echo)
    >>> _ = asyncio.run(systemctl.enable('db_backup.timer'))
    systemctl --user enable db_backup.timer
    >>> _ = asyncio.run(systemctl.daemon_reload())
    systemctl --user daemon-reload
    """
    def __init__(self, manager: str = '--system', runner=async_run):
        assert manager in MANAGERS, f'manager must be one of {MANAGERS}'
        self.manager = manager
        self.runner = runner

    async def async_systemctl(self, command: str, unit: str = '',
                              check: bool = True):
        """Run a systemctl command asynchronously

        Raises `CommandError` on a non-zero exit status, unless `check` is
        false.
        """
        args = ['systemctl', self.manager, command]
        if unit:
            args.append(unit)
        result = await self.runner(args)
        if check and result.returncode != 0:
            raise CommandError(args, result.returncode, result.stderr)
        return result

    async def _unit_cmd(self, command, unit):
        result = await self.async_systemctl(command, unit)
        return result.stdout, result.stderr

    async def is_active(self, unit: str):
        """Whether the unit is running"""
        result = await self.async_systemctl('is-active', unit, check=False)
        return result.returncode == 0

    async def is_enabled(self, unit: str):
        """Whether the unit is enabled"""
        result = await self.async_systemctl('is-enabled', unit, check=False)
        return result.returncode == 0

    async def start(self, unit: str):
        return await self._unit_cmd('start', unit)

    async def stop(self, unit: str):
        return await self._unit_cmd('stop', unit)

    async def enable(self, unit: str):
        return await self._unit_cmd('enable', unit)

    async def disable(self, unit: str):
        return await self._unit_cmd('disable', unit)

    async def daemon_reload(self):
        """Reload the systemd daemon"""
        return await self._unit_cmd('daemon-reload', '')
