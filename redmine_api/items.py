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

# This file contains the item base class and the field descriptions
# that drive reading and writing items in both wire formats.

from xml.etree.ElementTree import SubElement

from . import keys
from . import readers
from .errors import FormatError

# Wire formats
XML = 'xml'
JSON = 'json'


def item_id(value, name):
    '''The id of a referenced item.  A plain integer id is taken as is.'''
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return value.id
    except AttributeError:
        raise TypeError('%s must be an item or an integer id, got %r' % (name, value))


class Field(object):
    '''Describes how one attribute of an item travels over the wire.

    key           -- the element, attribute or JSON key holding the value
    attr          -- the attribute on the item (defaults to key)
    writable      -- False for anything only the server sets
    write_key     -- the name used when sending the value back, if different
    existing_only -- formats in which the value is only sent once the item
                     has an id
    xml_attribute -- in XML the value is an attribute of the item's element
                     instead of a child element
    '''

    def __init__(self, key, attr=None, writable=True, write_key=None,
                 existing_only=(), xml_attribute=False):
        self.key = key
        self.attr = attr or key
        self.writable = writable
        self.write_key = write_key or key
        self.existing_only = existing_only
        self.xml_attribute = xml_attribute

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.key)

    def writes(self, item, mime_format):
        '''Should this field be part of the payload for the given item?'''
        if not self.writable:
            return False
        if mime_format in self.existing_only and not item.id:
            return False
        return getattr(item, self.attr) is not None

    def is_absent(self, node):
        '''An empty element with no attributes stands for "no value".'''
        return (not node.attrib and len(node) == 0
                and not (node.text or '').strip())

    def parse(self, text):
        return text

    def to_text(self, value):
        return str(value)

    def read_xml(self, node):
        return self.parse(node.text or '')

    def read_json(self, data):
        return data[self.key]

    def write_xml(self, element, value, item):
        if self.xml_attribute:
            element.set(self.write_key, self.to_text(value))
        else:
            SubElement(element, self.write_key).text = self.to_text(value)

    def write_json(self, value, item):
        return value


class String_Field(Field):

    def is_absent(self, node):
        # <description></description> is an empty description, not a missing one
        return False

    def read_xml(self, node):
        return readers.read_string(node)

    def read_json(self, data):
        return readers.get_string(data, self.key)


class Int_Field(Field):

    def parse(self, text):
        return readers.parse_int(text, self.key)

    def read_xml(self, node):
        return readers.read_int(node)

    def read_json(self, data):
        return readers.get_int(data, self.key)


class Bool_Field(Field):

    def parse(self, text):
        return readers.parse_bool(text, self.key)

    def to_text(self, value):
        return 'true' if value else 'false'

    def read_xml(self, node):
        return readers.read_bool(node)

    def read_json(self, data):
        return readers.get_bool(data, self.key)

    def write_json(self, value, item):
        return bool(value)


class Date_Time_Field(Field):

    def parse(self, text):
        return readers.parse_datetime(text, self.key)

    def to_text(self, value):
        try:
            return value.strftime('%Y-%m-%dT%H:%M:%S%z')
        except AttributeError:
            return str(value)

    def read_xml(self, node):
        return readers.read_datetime(node)

    def read_json(self, data):
        return readers.get_datetime(data, self.key)

    def write_json(self, value, item):
        return self.to_text(value)


class Reference_Field(Field):
    '''A reference to another item, such as a project's parent.
    It is read as a whole {id, name} item but written back as just the id,
    usually under a different name (parent -> parent_id).'''

    def __init__(self, key, item_class=None, **options):
        super(Reference_Field, self).__init__(key, **options)
        self.item_class = item_class or Identifiable_Name

    def writes(self, item, mime_format):
        if not super(Reference_Field, self).writes(item, mime_format):
            return False
        return item_id(getattr(item, self.attr), self.attr) is not None

    def read_xml(self, node):
        return self.item_class.from_xml(node)

    def read_json(self, data):
        return self.item_class.from_json(readers.get_dict(data, self.key))

    def write_xml(self, element, value, item):
        SubElement(element, self.write_key).text = str(item_id(value, self.attr))

    def write_json(self, value, item):
        return item_id(value, self.attr)


class Reference_Id_Field(Field):
    '''A bare id that stands for a reference, such as a file's version_id.'''

    def __init__(self, key, attr, item_class=None, **options):
        options.setdefault('writable', False)
        super(Reference_Id_Field, self).__init__(key, attr=attr, **options)
        self.item_class = item_class or Identifiable_Name

    def read_xml(self, node):
        return self.item_class(id=readers.read_int(node))

    def read_json(self, data):
        return self.item_class(id=readers.get_int(data, self.key))


class Collection_Field(Field):
    '''An ordered list of sub-items.

    In XML the items sit inside a wrapper element (<trackers type="array">)
    and are found by their own element name; in JSON they are a plain list.
    When id_key is given, writing sends only the ids of the items
    (users -> <user_ids><user_id>5</user_id></user_ids>).'''

    def __init__(self, key, item_class, container=list, id_key=None, **options):
        super(Collection_Field, self).__init__(key, **options)
        self.item_class = item_class
        self.container = container
        self.id_key = id_key

    def read_xml(self, node):
        tag = self.item_class._get_type()
        return self.container([self.item_class.from_xml(child)
                               for child in node if child.tag == tag])

    def read_json(self, data):
        return self.container([self.item_class.from_json(entry)
                               for entry in readers.get_list(data, self.key)])

    def write_xml(self, element, value, item):
        wrapper = SubElement(element, self.write_key)
        wrapper.set(keys.TYPE, 'array')
        for sub_item in value:
            if self.id_key:
                SubElement(wrapper, self.id_key).text = str(item_id(sub_item, self.attr))
            else:
                sub_item._write_xml(SubElement(wrapper, sub_item._get_type()))

    def write_json(self, value, item):
        if self.id_key:
            return [item_id(sub_item, self.attr) for sub_item in value]
        return [sub_item._write_json() for sub_item in value]


class Id_List_Field(Field):
    '''A list of bare ids read into references, such as a group's user_ids.
    This is the form a Collection_Field with an id_key is written in.'''

    def __init__(self, key, attr, item_class, id_key, **options):
        options.setdefault('writable', False)
        super(Id_List_Field, self).__init__(key, attr=attr, **options)
        self.item_class = item_class
        self.id_key = id_key

    def read_xml(self, node):
        return [self.item_class(id=readers.read_int(child))
                for child in node if child.tag == self.id_key]

    def read_json(self, data):
        return [self.item_class(id=id)
                for id in readers.get_int_list(data, self.key)]


class Custom_Value_Field(Field):
    '''The value(s) of a custom field.
    Multiple-value fields nest their values: <value type="array"><value>...'''

    def is_absent(self, node):
        return False

    def read_xml(self, node):
        if node.get(keys.TYPE) == 'array' or len(node):
            return [readers.read_string(child)
                    for child in node if child.tag == keys.VALUE]
        return [readers.read_string(node)]

    def read_json(self, data):
        value = data[self.key]
        if isinstance(value, list):
            return ['' if entry is None else str(entry) for entry in value]
        return [readers.get_string(data, self.key)]

    def write_xml(self, element, value, item):
        if item.multiple:
            wrapper = SubElement(element, self.write_key)
            wrapper.set(keys.TYPE, 'array')
            for entry in value:
                SubElement(wrapper, keys.VALUE).text = entry
        else:
            SubElement(element, self.write_key).text = value[0] if value else ''

    def write_json(self, value, item):
        if item.multiple:
            return list(value)
        return value[0] if value else ''


def _hashable(value):
    # Key fields may hold lists of items (roles) or of values (custom values)
    if isinstance(value, (list, tuple, Custom_Fields)):
        return tuple(_hashable(entry) for entry in value)
    return value


class Redmine_Item(object):
    '''A generic representation of an item in Redmine.

    Subclasses describe their wire format with the _fields list; one engine
    here reads and writes every item type from that description.'''
    # Data hints
    id = None

    # How each attribute is read and written, in the order the server
    # expects them when writing
    _fields = []

    # The attributes compared when testing two items for equality
    _key_fields = ('id',)

    # Formats the item can travel in
    _formats = (XML, JSON)

    _type = None

    # How to communicate this info to/from the server
    _query_container = ''
    _query_path = ''
    _item_path = ''
    _item_new_path = ''

    @classmethod
    def _get_type(cls):
        '''Returns the object type string.
        This string names the item's XML element and wraps it in JSON.'''
        return cls._type or cls.__name__.lower()

    @classmethod
    def _attributes(cls):
        return set(field.attr for field in cls._fields)

    def __init__(self, **data):
        known = self._attributes()
        for name, value in data.items():
            if name not in known:
                raise TypeError('%s has no field %r'
                                % (self.__class__.__name__, name))
            setattr(self, name, value)

    @classmethod
    def from_xml(cls, element):
        item = cls()
        item._read_xml(element)
        return item

    @classmethod
    def from_json(cls, data):
        item = cls()
        item._read_json(data)
        return item

    def _read_xml(self, element):
        '''Update this item from its XML element.'''
        by_key = {}
        for field in self._fields:
            if not field.xml_attribute:
                by_key[field.key] = field
                continue
            text = element.get(field.key)
            if text is not None:
                setattr(self, field.attr, field.parse(text))

        for child in element:
            field = by_key.get(child.tag)
            # Skip anything this version doesn't know about
            if field is None or field.is_absent(child):
                continue
            setattr(self, field.attr, field.read_xml(child))

    def _read_json(self, data):
        '''Update this item from its decoded JSON object.'''
        if not isinstance(data, dict):
            raise FormatError('%s: expected an object, got %r'
                              % (self._get_type(), data))
        for field in self._fields:
            if data.get(field.key) is None:
                continue
            setattr(self, field.attr, field.read_json(data))

    def _write_xml(self, element):
        for field in self._fields:
            if field.writes(self, XML):
                field.write_xml(element, getattr(self, field.attr), self)

    def _write_json(self):
        data = {}
        for field in self._fields:
            if field.writes(self, JSON):
                data[field.write_key] = field.write_json(
                    getattr(self, field.attr), self)
        return data

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name)
                   for name in self._key_fields)

    def __hash__(self):
        return hash((type(self),) + tuple(_hashable(getattr(self, name))
                                          for name in self._key_fields))

    def __repr__(self):
        name = getattr(self, 'name', None)
        if name is None:
            return '<Redmine %s #%s>' % (self._get_type(), self.id)
        return '<Redmine %s #%s - %s>' % (self._get_type(), self.id, name)

    def __int__(self):
        return self.id

    def __str__(self):
        name = getattr(self, 'name', None)
        if name is None:
            return self.__repr__()
        return name


class Identifiable_Name(Redmine_Item):
    '''A reference to another item: just its id and its name.'''
    # data hints:
    name = None

    _fields = [
        Int_Field(keys.ID, xml_attribute=True),
        String_Field(keys.NAME, xml_attribute=True),
    ]


class Custom_Fields(object):
    '''Custom fields attached to a Redmine item.
    This behaves somewhat like a dictionary, but the custom field can be accessed by either name or ID.
    For instance, if your custom field is called "The Client" and Redmine has assigned that field
    the ID of 4, then you can check the value of that field by using (item).custom_fields[4] or
    (item).custom_fields['The Client'].  You can assign a new value by simply assigning the value:
    (item).custom_fields['The Client'] = 'John Cleese' or (item).custom_fields[4] = 'John Cleese'

    Iterating gives the Custom_Field items in the order the server sent them.'''

    def __init__(self, fields=()):
        self._data = list(fields)

    def __repr__(self):
        return '<Custom Fields: %s>' % self._data

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)

    def __eq__(self, other):
        if not isinstance(other, Custom_Fields):
            return NotImplemented
        return self._data == other._data

    def get_field(self, key):
        '''Return the Custom_Field with the given id or name.'''
        for field in self._data:
            if field.id == key or field.name == key:
                return field
        raise KeyError(key)

    def __getitem__(self, key):
        # returned when self[key] is called
        field = self.get_field(key)
        if field.multiple:
            return field.values
        return field.value

    def __setitem__(self, key, value):
        # returned when self[key]=value
        field = self.get_field(key)
        if isinstance(value, (list, tuple)):
            field.values = [str(entry) for entry in value]
        else:
            field.values = [str(value)]
