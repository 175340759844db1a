"""Fixed paths and values used when declaring units and tmpfiles."""

SYSTEM_UNIT_PATH = '/etc/systemd/system'
USER_UNIT_PATH = '~/.config/systemd/user'

# directories systemd loads unit files from
UNIT_SEARCH_PATHS = (
    '/etc/systemd/system',
    '/run/systemd/system',
    '/usr/lib/systemd/system',
    '/lib/systemd/system',
    '~/.config/systemd/user',
    '/etc/systemd/user',
    '/usr/lib/systemd/user',
)

TMPFILES_PATH = '/etc/tmpfiles.d'
TMPFILES_COMMAND = ('systemd-tmpfiles', '--create')

UNIT_FILE_MODE = 0o444
TMPFILE_MODE = 0o444

SERVICE_TYPE = 'oneshot'
TIMER_WANTED_BY = 'timers.target'

ENSURE_VALUES = ('present', 'absent')
FILE_ENSURE_VALUES = ('present', 'file', 'absent')

MANAGERS = ('--system', '--user')
