import io
from configparser import RawConfigParser


class MultiConfigParser(RawConfigParser):
    """A config parser for unit files that allows repeated options.

    Some directives (e.g. `ExecStart` of a oneshot service) may appear
    several times in a section. Such multi-options hold a list and are
    written out as one line per element.

    Examples:
    ---------

    >>> parser = MultiConfigParser(default_section=None, interpolation=None)
    >>> parser.optionxform = str
    >>> parser.add_section('Service')
    >>> parser.set('Service', 'ExecStart', '/usr/bin/backup --full')
    >>> parser.append('Service', 'ExecStart', '/usr/bin/backup --verify')
    >>> print(parser.render())
    [Service]
    ExecStart=/usr/bin/backup --full
    ExecStart=/usr/bin/backup --verify
    <BLANKLINE>
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._multioptions = set()

    def set(self, section, option, value=None, multioption=False):
        if multioption:
            if not isinstance(value, list):
                value = [value]
            self._multioptions.add((section, option))
        else:
            self._multioptions.discard((section, option))
        super().set(section=section, option=option, value=value)

    def append(self, section, option, value=None):
        """Add another value to an existing option making it multioption
        """
        if option in self.options(section):
            new_val = self.get(section, option)
            if not isinstance(new_val, list):
                new_val = [new_val]
            new_val.append(value)
            value = new_val
        self.set(section, option, value, multioption=True)

    def write(self, fp, space_around_delimiters=False):
        """Write the non-empty sections to `fp`, separated by a blank line.
        """
        delimiter = self._delimiters[0]
        if space_around_delimiters:
            delimiter = f' {delimiter} '
        first = True
        for section_name in self.sections():
            section_items = self._sections[section_name].items()
            if not section_items:
                continue
            if not first:
                fp.write('\n')
            first = False
            self._write_section(fp, section_name, section_items, delimiter)

    def _write_section(self, fp, section_name, section_items, delimiter,
                       *args, **kwargs):
        """Write a single section to the specified `fp'."""
        fp.write("[{}]\n".format(section_name))
        for key, value in section_items:
            if not (section_name, key) in self._multioptions:
                value = [value, ]
            for _value in value:
                _value = str(_value).replace('\n', '\\\n')
                fp.write("{}{}{}\n".format(key, delimiter, _value))

    def render(self):
        """Return the content as it would be written to a file"""
        with io.StringIO() as buffer:
            self.write(buffer)
            return buffer.getvalue()
