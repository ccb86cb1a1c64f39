# PyRedmineWS - Python Redmine Web Services
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.

# Low level readers for single values.
# The read_* functions take an XML element, the get_* functions take a
# decoded JSON object and a key.  Missing values come back as the default,
# values that are there but can't be understood raise a FormatError.

from dateutil.parser import isoparse as datetime_parse

from .errors import FormatError


def parse_int(text, key):
    try:
        return int(text.strip())
    except (AttributeError, ValueError):
        raise FormatError('%s: expected an integer, got %r' % (key, text))


def parse_bool(text, key):
    value = text.strip().lower()
    if value in ('true', '1'):
        return True
    if value in ('false', '0'):
        return False
    raise FormatError('%s: expected true or false, got %r' % (key, text))


def parse_datetime(text, key):
    '''Parse a date or date/time the way Redmine writes them (ISO 8601).
    Returns None for empty text.'''
    if not text or not text.strip():
        return None
    try:
        return datetime_parse(text.strip())
    except (ValueError, OverflowError):
        raise FormatError('%s: expected a date, got %r' % (key, text))


def read_string(node):
    return node.text or ''


def read_int(node):
    return parse_int(node.text or '', node.tag)


def read_bool(node):
    return parse_bool(node.text or '', node.tag)


def read_datetime(node):
    return parse_datetime(node.text, node.tag)


def read_int_attribute(node, key, default=None):
    '''Read an integer held in an attribute, such as total_count="12".'''
    text = node.get(key)
    if text is None:
        return default
    return parse_int(text, key)


def to_int(value, key):
    '''Check a decoded JSON value is an integer (or its text).'''
    if isinstance(value, bool):
        raise FormatError('%s: expected an integer, got %r' % (key, value))
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return parse_int(value, key)
    raise FormatError('%s: expected an integer, got %r' % (key, value))


def get_int(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    return to_int(value, key)


def get_int_list(data, key, default=None):
    '''A list of ids, such as "user_ids": [5, 6].'''
    values = get_list(data, key)
    if values is None:
        return default
    return [to_int(value, key) for value in values]


def get_string(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        raise FormatError('%s: expected a string, got %r' % (key, value))
    # The older JSON dialect happily sends numbers where strings are meant
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def get_bool(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, int)):
        return parse_bool(str(value), key)
    raise FormatError('%s: expected true or false, got %r' % (key, value))


def get_datetime(data, key):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise FormatError('%s: expected a date, got %r' % (key, value))
    return parse_datetime(value, key)


def get_dict(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, dict):
        raise FormatError('%s: expected an object, got %r' % (key, value))
    return value


def get_list(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, list):
        raise FormatError('%s: expected a list, got %r' % (key, value))
    return value
