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

# Turns response bodies into items and items into request bodies.
# Nothing here talks to the network: the transport hands over a complete
# body and gets back a string to send.

import json
from xml.etree.ElementTree import Element, ParseError, tostring

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring

from . import keys
from . import readers
from .errors import FormatError, UnsupportedTypeError
from .items import JSON, XML, Redmine_Item


class Paginated_Objects(object):
    '''One page of items from a list request, along with the paging
    information the server reported.

    Some list requests don't report total_count, offset or limit.  In that
    case the page is taken to be everything there is: total_count and limit
    are the number of items returned, and offset is 0.'''

    def __init__(self, objects, total_count=None, offset=None, limit=None):
        self.objects = list(objects)
        if total_count is None:
            total_count = len(self.objects)
        if offset is None:
            offset = 0
        if limit is None:
            limit = len(self.objects)
        self.total_count = total_count
        self.offset = offset
        self.limit = limit

    def __repr__(self):
        return '<Paginated Objects: %s of %s from offset %s>' % (
            len(self.objects), self.total_count, self.offset)

    def __iter__(self):
        return iter(self.objects)

    def __len__(self):
        return len(self.objects)

    def __getitem__(self, index):
        return self.objects[index]


class Xml_Codec(object):
    '''Reads and writes the XML flavour of the REST interface.

    Collections come back as a wrapper element named after the collection,
    carrying the paging attributes and holding one element per item named
    after the item:
    <projects type="array" total_count="2" offset="0" limit="25">
      <project>...</project>
    </projects>'''
    content_type = 'application/xml'

    def parse(self, body):
        try:
            return fromstring(body)
        except (ParseError, DefusedXmlException) as e:
            raise FormatError('Could not read the XML reply: %s' % e)

    def _check_errors(self, root):
        if root.tag == keys.ERRORS:
            raise FormatError('Redmine returned errors instead of data: %s'
                              % '; '.join(self._errors(root)))

    def _errors(self, root):
        return [readers.read_string(child)
                for child in root if child.tag == keys.ERROR]

    def dump(self, item):
        root = Element(item._get_type())
        item._write_xml(root)
        return tostring(root, encoding='unicode')

    def dump_value(self, key, value):
        element = Element(key)
        element.text = str(value)
        return tostring(element, encoding='unicode')

    def load(self, cls, body):
        root = self.parse(body)
        self._check_errors(root)
        if root.tag != cls._get_type():
            raise FormatError('Expected a <%s> element, got <%s>'
                              % (cls._get_type(), root.tag))
        return cls.from_xml(root)

    def load_list(self, cls, body):
        root = self.parse(body)
        self._check_errors(root)
        if not cls._query_container or root.tag != cls._query_container:
            raise FormatError('Expected a list of %s, got <%s>'
                              % (cls._get_type(), root.tag))
        tag = cls._get_type()
        objects = [cls.from_xml(child) for child in root if child.tag == tag]
        return Paginated_Objects(
            objects,
            total_count=readers.read_int_attribute(root, keys.TOTAL_COUNT),
            offset=readers.read_int_attribute(root, keys.OFFSET),
            limit=readers.read_int_attribute(root, keys.LIMIT))

    def load_errors(self, body):
        return self._errors(self.parse(body))


class Json_Codec(object):
    '''Reads and writes the JSON flavour of the REST interface.

    A single item is wrapped in its type name ({"project": {...}}), a
    collection sits under the plural container name next to the paging
    values ({"projects": [...], "total_count": 2, "offset": 0, "limit": 25}).'''
    content_type = 'application/json'

    def parse(self, body):
        try:
            data = json.loads(body)
        except ValueError as e:
            raise FormatError('Could not read the JSON reply: %s' % e)
        if not isinstance(data, dict):
            raise FormatError('Expected a JSON object, got %r' % (data,))
        return data

    def _check_errors(self, data):
        if keys.ERRORS in data:
            raise FormatError('Redmine returned errors instead of data: %s'
                              % '; '.join(self._errors(data)))

    def _errors(self, data):
        return [str(error) for error in readers.get_list(data, keys.ERRORS, [])]

    def dump(self, item):
        return json.dumps({item._get_type(): item._write_json()})

    def dump_value(self, key, value):
        return json.dumps({key: value})

    def load(self, cls, body):
        data = self.parse(body)
        self._check_errors(data)
        # Most replies have {'issue':{<data>}} instead of just {<data>}
        if cls._get_type() in data:
            data = data[cls._get_type()]
        elif not any(field.key in data for field in cls._fields):
            raise FormatError('Expected a %s, got an object with %s'
                              % (cls._get_type(), sorted(data)))
        return cls.from_json(data)

    def load_list(self, cls, body):
        data = self.parse(body)
        self._check_errors(data)
        try:
            entries = data[cls._query_container]
        except KeyError:
            raise FormatError('Expected a list of %s under %r'
                              % (cls._get_type(), cls._query_container))
        if not isinstance(entries, list):
            raise FormatError('%s: expected a list, got %r'
                              % (cls._query_container, entries))
        return Paginated_Objects(
            [cls.from_json(entry) for entry in entries],
            total_count=readers.get_int(data, keys.TOTAL_COUNT),
            offset=readers.get_int(data, keys.OFFSET),
            limit=readers.get_int(data, keys.LIMIT))

    def load_errors(self, body):
        return self._errors(self.parse(body))


_codecs = {
    XML: Xml_Codec(),
    JSON: Json_Codec(),
}

_item_classes = None


def find_all_item_classes():
    '''Finds all Redmine_Item subclasses that the library defines.'''
    # This is a circular import, but it runs only once the modules are loaded.
    # Any item class added to redmine.py is picked up without registering it.
    from . import redmine as public_classes

    item_classes = set()
    for value in vars(public_classes).values():
        if isinstance(value, type) and issubclass(value, Redmine_Item) \
                and value is not Redmine_Item:
            item_classes.add(value)
    return item_classes


def _registered_classes():
    global _item_classes
    if _item_classes is None:
        _item_classes = find_all_item_classes()
    return _item_classes


def register(cls):
    '''Register an item class defined outside this library.
    Can be used as a class decorator.'''
    _registered_classes().add(cls)
    return cls


def get_format_codec(mime_format):
    try:
        return _codecs[mime_format]
    except (KeyError, TypeError):
        raise UnsupportedTypeError('Unknown format %r' % (mime_format,))


def get_codec(cls, mime_format):
    '''Return the codec that reads and writes cls in the given format.'''
    codec = get_format_codec(mime_format)
    try:
        registered = cls in _registered_classes()
    except TypeError:
        registered = False
    if not registered or mime_format not in cls._formats:
        raise UnsupportedTypeError('%s is not supported in %s'
                                   % (getattr(cls, '__name__', cls), mime_format))
    return codec


def content_type(mime_format):
    return get_format_codec(mime_format).content_type


def serialize(item, mime_format):
    '''Return the request body for the given item.'''
    return get_codec(type(item), mime_format).dump(item)


def serialize_value(key, value, mime_format):
    '''Return a request body carrying a single value, such as a user_id.'''
    return get_format_codec(mime_format).dump_value(key, value)


def deserialize(cls, body, mime_format):
    '''Return an item of type cls read from a response body.'''
    return get_codec(cls, mime_format).load(cls, body)


def deserialize_list(cls, body, mime_format):
    '''Return a Paginated_Objects of cls items read from a response body.'''
    return get_codec(cls, mime_format).load_list(cls, body)


def deserialize_errors(body, mime_format):
    '''Return the messages of an error document.'''
    return get_format_codec(mime_format).load_errors(body)
