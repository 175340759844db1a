r"""Turn arbitrary titles into names systemd accepts for units.

The rules are the ones of ``systemd-escape``:

- ``/`` is replaced by ``-``
- a leading ``.`` and every character other than ASCII letters, digits,
  ``:``, ``_`` and ``.`` are written as ``\xNN``, one per UTF-8 byte

Examples:
---------

>>> print(escape('backup db'))
backup\x20db
>>> print(escape('nightly-report'))
nightly\x2dreport
>>> print(escape('/var/lib/backup/', path=True))
var-lib-backup
>>> print(unescape(r'backup\x20db'))
backup db
"""
import re
import string
import typing

VALID_CHARS = frozenset(string.ascii_letters + string.digits + ':_.')
HEX_DIGITS = re.compile(r'[0-9a-fA-F]{2}')


def _simplify_path(path: str):
    return '/'.join(part for part in path.split('/') if part not in ('', '.'))


def escape(text: str, path: bool = False):
    r"""Escape `text` into a string usable as (part of) a unit name.

    With `path` set, `text` is treated as a file system path: duplicate,
    leading and trailing slashes are dropped and the root directory becomes
    ``-``.

    >>> print(escape('.hidden'))
    \x2ehidden
    >>> print(escape('/', path=True))
    -
    >>> print(escape('weekly/cleanup'))
    weekly-cleanup
    """
    if path:
        text = _simplify_path(text)
        if not text:
            return '-'
    elif not text:
        raise ValueError('Cannot escape an empty string')
    escaped = []
    for position, char in enumerate(text):
        if char == '/':
            escaped.append('-')
        elif char in VALID_CHARS and not (position == 0 and char == '.'):
            escaped.append(char)
        else:
            escaped.extend(f'\\x{byte:02x}' for byte in char.encode('utf-8'))
    return ''.join(escaped)


def unescape(text: str, path: bool = False):
    r"""Reverse `escape`.

    >>> print(unescape(r'nightly\x2dreport'))
    nightly-report
    >>> print(unescape('var-lib-backup', path=True))
    /var/lib/backup
    >>> print(unescape('-', path=True))
    /
    """
    raw = bytearray()
    position = 0
    while position < len(text):
        if text.startswith('\\x', position):
            digits = text[position + 2:position + 4]
            if not HEX_DIGITS.fullmatch(digits):
                raise ValueError('Truncated or invalid escape sequence at'
                                 f' position {position} of {text!r}')
            raw.append(int(digits, 16))
            position += 4
        elif text[position] == '-':
            raw.extend(b'/')
            position += 1
        else:
            raw.extend(text[position].encode('utf-8'))
            position += 1
    unescaped = raw.decode('utf-8')
    if path:
        return '/' + unescaped.strip('/')
    return unescaped


def unit_name(title: str, suffix: typing.Optional[str] = None):
    r"""Escaped unit name for a resource title, with an optional type suffix.

    >>> unit_name('db_backup', 'timer')
    'db_backup.timer'
    >>> print(unit_name('db backup', 'service'))
    db\x20backup.service
    """
    name = escape(title)
    if suffix:
        name += f'.{suffix}'
    return name
