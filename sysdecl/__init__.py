"""Declare systemd timers and tmpfiles.d entries and apply them.

.. moduleauthor:: Jonas Liechti

"""
__version__ = '0.4.0'

from .catalog import Catalog
from .configs import MultiConfigParser
from .errors import (
    InvalidDropinNameError,
    MissingCommandError,
    MissingTriggerError,
    ValidationError,
)
from .providers import Applier, apply_catalog
from .timer_wrapper import TimerWrapper
from .tmpfile import Tmpfile
from .unit_configs import ServiceConfig, TimerConfig, UnitConfig


__all__ = [
    'Applier', 'Catalog', 'MultiConfigParser', 'ServiceConfig',
    'TimerConfig', 'TimerWrapper', 'Tmpfile', 'UnitConfig',
    'InvalidDropinNameError', 'MissingCommandError', 'MissingTriggerError',
    'ValidationError', 'apply_catalog',
]

DOCTEST_MODULES = (
    'catalog',
    'commands',
    'configs',
    'escape',
    'manifest',
    'resources',
    'timer_wrapper',
    'tmpfile',
    'unit_configs',
)


def load_tests(loader, tests, ignore):
    import doctest

    for module in DOCTEST_MODULES:
        tests.addTests(doctest.DocTestSuite(f'{__name__}.{module}'))
    return tests
