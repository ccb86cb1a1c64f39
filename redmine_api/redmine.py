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

from . import keys
from . import readers
from . import serializer
from .errors import FormatError, RedmineError
from .items import (JSON, XML, Bool_Field, Collection_Field, Custom_Fields,
                    Custom_Value_Field, Date_Time_Field, Id_List_Field,
                    Identifiable_Name, Int_Field, Redmine_Item, Reference_Field,
                    Reference_Id_Field, String_Field)
from .redmine_rest import Redmine_Items_Manager, Redmine_WS

# To create a new item to be read from Redmine, create a class for that item
# based on the Redmine_Item class.  By default the class name, lower cased,
# is the name of that item within the rest interfaces.  For instance,
# Redmine will return an item called "project", and the class to interface
# with that item is called Project.  Items whose element name differs from
# the class name (a project's "tracker" references) set _type.

# The class should provide hints as to the data that will be returned by
# setting the expected item to None.

# The _fields list tells the serializer how every attribute is read from
# and written to the wire, for both XML and JSON:
#
#   String_Field, Int_Field, Bool_Field, Date_Time_Field -- plain values
#   Reference_Field    -- an {id, name} reference, written back as an id
#                         (parent is read, parent_id is written)
#   Reference_Id_Field -- a bare id read into a reference (version_id)
#   Collection_Field   -- an ordered list of sub-items, optionally
#                         written back as a list of ids (users -> user_ids)
#   Id_List_Field      -- reads such a list of ids back (user_ids)
#
# Fields the server manages itself are marked writable=False and are never
# sent.  Fields are written in the order they are listed, which matters
# to the XML interface.  A field with existing_only=(XML,) is only sent
# in XML once the item has an id.

# In order to get data from and set data to the server,
# the Redmine_Items_Manager looks for specific fields within the item class to
# tell it which path to use. Also, information coming back from queries is
# contained within a wrapper, which is usually, but not always, just the plural
# of the item name.
# (project -> projects, time_entry -> time_entries, news -> news)
# If any of the information isn't provided, the equivalent functions will
# not be available.  {format} is replaced by xml or json, {id} by the item
# id and {owner} by the project the items belong to.
#
#  _query_container = 'items'             # Usually the plural of the 'item'.
#  _query_path = 'items.{format}'         # Used for generating lists of items.
#                                         # (iterators)
#  _item_path = 'items/{id}.{format}'     # Where to get the individual item and
#                                         # save it back.
#  _item_new_path = 'items.{format}'      # Where to put new item info.
#                                         # Often the same as the _query_path.


class Project_Tracker(Identifiable_Name):
    '''A tracker enabled on a project.'''
    _type = keys.TRACKER


class Group_User(Identifiable_Name):
    '''A user belonging to a group.'''
    _type = keys.USER


class User_Group(Identifiable_Name):
    '''A group a user belongs to.'''
    _type = keys.GROUP


class Membership_Role(Identifiable_Name):
    '''A role given through a project membership.'''
    _type = keys.ROLE

    # data hints:
    inherited = None

    _fields = Identifiable_Name._fields + [
        Bool_Field(keys.INHERITED, xml_attribute=True, writable=False),
    ]


class Custom_Field(Redmine_Item):
    '''The value of one custom field on an item.
    Multiple-value fields hold several entries in values.'''
    # data hints:
    id = None
    name = None
    multiple = None
    values = None

    _fields = [
        Int_Field(keys.ID, xml_attribute=True),
        String_Field(keys.NAME, xml_attribute=True, writable=False),
        Bool_Field(keys.MULTIPLE, xml_attribute=True, writable=False),
        Custom_Value_Field(keys.VALUE, attr='values'),
    ]

    _key_fields = ('id', 'name', 'multiple', 'values')

    @property
    def value(self):
        '''The first (usually only) value.'''
        if self.values:
            return self.values[0]
        return None


class Project(Redmine_Item):
    '''Object representing a Redmine project.
    '''
    # data hints:
    id = None
    name = None
    identifier = None
    description = None
    parent = None
    homepage = None
    created_on = None
    updated_on = None
    trackers = None
    custom_fields = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.NAME),
        String_Field(keys.IDENTIFIER),
        String_Field(keys.DESCRIPTION),
        # The XML interface only takes these two once the project exists
        Reference_Field(keys.PARENT, write_key=keys.PARENT_ID,
                        existing_only=(XML,)),
        # Requests echoed back carry only the id
        Reference_Id_Field(keys.PARENT_ID, attr='parent'),
        String_Field(keys.HOMEPAGE, existing_only=(XML,)),
        Date_Time_Field(keys.CREATED_ON, writable=False),
        Date_Time_Field(keys.UPDATED_ON, writable=False),
        Collection_Field(keys.TRACKERS, Project_Tracker, writable=False),
        Collection_Field(keys.CUSTOM_FIELDS, Custom_Field,
                         container=Custom_Fields, writable=False),
    ]

    _key_fields = ('id', 'identifier')

    # How to communicate this info to/from the server
    _query_container = 'projects'
    _query_path = 'projects.{format}'
    _item_path = 'projects/{id}.{format}'
    _item_new_path = 'projects.{format}'

    def __repr__(self):
        return '<Redmine project #%s "%s">' % (self.id, self.identifier)


class Tracker(Redmine_Item):
    '''Object representing a Redmine tracker.'''
    # data hints:
    id = None
    name = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.NAME, writable=False),
    ]

    # How to communicate this info to/from the server
    _query_container = 'trackers'
    _query_path = 'trackers.{format}'
    _item_path = None
    _item_new_path = None

    def __str__(self):
        return '<Redmine tracker #%s, "%s">' % (self.id, self.name)


class File(Redmine_Item):
    '''Object representing a file published in a project's Files area.'''
    # data hints:
    id = None
    token = None
    version = None
    filename = None
    description = None
    filesize = None
    content_type = None
    content_url = None
    author = None
    created_on = None
    digest = None
    downloads = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.TOKEN),
        # Some replies carry only the version's id
        Reference_Id_Field(keys.VERSION_ID, attr='version'),
        Reference_Field(keys.VERSION, write_key=keys.VERSION_ID),
        String_Field(keys.FILENAME),
        String_Field(keys.DESCRIPTION),
        Int_Field(keys.FILESIZE, writable=False),
        String_Field(keys.CONTENT_TYPE, writable=False),
        String_Field(keys.CONTENT_URL, writable=False),
        Reference_Field(keys.AUTHOR, writable=False),
        Date_Time_Field(keys.CREATED_ON, writable=False),
        String_Field(keys.DIGEST, writable=False),
        Int_Field(keys.DOWNLOADS, writable=False),
    ]

    _key_fields = ('id', 'filename', 'filesize', 'description',
                   'content_type', 'content_url', 'author', 'created_on',
                   'version', 'digest', 'downloads', 'token')

    # Files are listed and created through their project
    _query_container = 'files'
    _query_path = 'projects/{owner}/files.{format}'
    _item_path = None
    _item_new_path = 'projects/{owner}/files.{format}'

    def __repr__(self):
        return '<Redmine file #%s "%s">' % (self.id, self.filename)


class Attachment(Redmine_Item):
    '''Object representing a file attached to an issue or other item.'''
    # data hints:
    id = None
    filename = None
    filesize = None
    content_type = None
    description = None
    content_url = None
    author = None
    created_on = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.FILENAME),
        String_Field(keys.DESCRIPTION),
        Int_Field(keys.FILESIZE, writable=False),
        String_Field(keys.CONTENT_TYPE, writable=False),
        String_Field(keys.CONTENT_URL, writable=False),
        Reference_Field(keys.AUTHOR, writable=False),
        Date_Time_Field(keys.CREATED_ON, writable=False),
    ]

    _key_fields = ('id', 'filename', 'filesize', 'content_type', 'author',
                   'created_on', 'description', 'content_url')

    # How to communicate this info to/from the server
    _item_path = 'attachments/{id}.{format}'

    def __repr__(self):
        return '<Redmine attachment #%s "%s">' % (self.id, self.filename)


class Attachments(Redmine_Item):
    '''Changes to several attachments of one issue, keyed by attachment id.
    The server only takes these through the JSON interface.'''
    _formats = (JSON,)

    _key_fields = ('attachments',)
    __hash__ = None

    def __init__(self, attachments=None):
        self.attachments = dict(attachments or {})

    def _read_json(self, data):
        if not isinstance(data, dict):
            raise FormatError('%s: expected an object, got %r'
                              % (self._get_type(), data))
        for key, value in data.items():
            attachment = Attachment.from_json(value)
            if attachment.id is None:
                attachment.id = readers.parse_int(key, keys.ATTACHMENTS)
            self.attachments[attachment.id] = attachment

    def _write_json(self):
        return dict((str(id), attachment._write_json())
                    for id, attachment in self.attachments.items())

    def __repr__(self):
        return '<Redmine attachments %s>' % sorted(self.attachments)


class Upload(Redmine_Item):
    '''A file sent to the server, waiting to be attached to an item.
    Created by Redmine.upload_file; pass the token along with the item.'''
    # data hints:
    id = None
    token = None
    filename = None
    content_type = None
    description = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.TOKEN),
        String_Field(keys.FILENAME),
        String_Field(keys.CONTENT_TYPE),
        String_Field(keys.DESCRIPTION),
    ]

    _key_fields = ('token',)

    def __repr__(self):
        return '<Redmine upload %s>' % (self.token,)


class Membership(Redmine_Item):
    '''Object representing a Redmine project membership.'''
    # data hints:
    id = None
    project = None
    user = None
    group = None
    roles = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        Reference_Field(keys.PROJECT, writable=False),
        Reference_Field(keys.USER, write_key=keys.USER_ID),
        Reference_Id_Field(keys.USER_ID, attr='user'),
        Reference_Field(keys.GROUP, writable=False),
        Collection_Field(keys.ROLES, Membership_Role,
                         write_key=keys.ROLE_IDS, id_key=keys.ROLE_ID),
        Id_List_Field(keys.ROLE_IDS, 'roles', Membership_Role, keys.ROLE_ID),
    ]

    _key_fields = ('id', 'project', 'user', 'group', 'roles')

    # Memberships are listed and created through their project
    _query_container = 'memberships'
    _query_path = 'projects/{owner}/memberships.{format}'
    _item_path = 'memberships/{id}.{format}'
    _item_new_path = 'projects/{owner}/memberships.{format}'

    def __str__(self):
        return '<Redmine project membership #%s>' % (self.id,)


class Group(Redmine_Item):
    '''Object representing a Redmine group of users.'''
    # data hints:
    id = None
    name = None
    users = None
    custom_fields = None
    memberships = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.NAME),
        Collection_Field(keys.USERS, Group_User,
                         write_key=keys.USER_IDS, id_key=keys.USER_ID),
        Id_List_Field(keys.USER_IDS, 'users', Group_User, keys.USER_ID),
        Collection_Field(keys.CUSTOM_FIELDS, Custom_Field,
                         container=Custom_Fields, writable=False),
        Collection_Field(keys.MEMBERSHIPS, Membership, writable=False),
    ]

    _key_fields = ('id', 'name')

    # How to communicate this info to/from the server
    _query_container = 'groups'
    _query_path = 'groups.{format}'
    _item_path = 'groups/{id}.{format}'
    _item_new_path = 'groups.{format}'


class User(Redmine_Item):
    '''Object for representing a single Redmine user.'''
    # data hints:
    id = None
    login = None
    firstname = None
    lastname = None
    mail = None
    password = None
    auth_source_id = None
    created_on = None
    last_login_on = None
    api_key = None
    status = None
    custom_fields = None
    groups = None
    memberships = None

    _fields = [
        Int_Field(keys.ID, writable=False),
        String_Field(keys.LOGIN),
        String_Field(keys.FIRSTNAME),
        String_Field(keys.LASTNAME),
        String_Field(keys.MAIL),
        String_Field(keys.PASSWORD),
        Int_Field(keys.AUTH_SOURCE_ID),
        Collection_Field(keys.CUSTOM_FIELDS, Custom_Field,
                         container=Custom_Fields),
        Date_Time_Field(keys.CREATED_ON, writable=False),
        Date_Time_Field(keys.LAST_LOGIN_ON, writable=False),
        String_Field(keys.API_KEY, writable=False),
        Int_Field(keys.STATUS, writable=False),
        Collection_Field(keys.GROUPS, User_Group, writable=False),
        Collection_Field(keys.MEMBERSHIPS, Membership, writable=False),
    ]

    # How to communicate this info to/from the server
    _query_container = 'users'
    _query_path = 'users.{format}'
    _item_path = 'users/{id}.{format}'
    _item_new_path = 'users.{format}'

    def __str__(self):
        return '%s %s' % (self.firstname, self.lastname)


class Redmine(Redmine_WS):
    '''
    Class to interoperate with a Redmine installation
    using the REST web services.

    instance = Redmine(url,
                       [key=<string>],
                       [username=<string>,
                       password=<string>],
                       [mime_format='xml'|'json'],
                       [page_size=<int>],
                       [version=<#.#>],
                       [impersonate=<string>])

    url is the base url of the Redmine install ('http://my.server/redmine')

    key is the user API key found on the My Account page for the logged in user
        All interactions will take place as if that user were performing them,
        and only data that that user can see will be seen.

    If a key is not defined then a username and password can be used
    If neither are defined, then only publicly visible items will be retreived

    mime_format picks the XML (default) or JSON interface.  Items read and
    written are the same either way.

    page_size is how many items are asked for at a time when iterating.

    If impersonate is set and the logged in user has administrator privileges,
    the user will be switched.

    When the version parameter is set, only items available in that version of
    Redmine are enabled.  For instance, version 1.0 only supports
    project management, but version 1.1 adds users and more secure key
    handling.  If the version is left off, more features and
    less security will be enabled for the best chance of a fully functioning
    module but the errors for attempting to use an unsupported function may
    be less than intuitive.

    Depending on the version of Redmine, these item managers may be available:
    projects

    Redmine version 1.1 adds:
    users

    Redmine version 1.3 adds:
    trackers
    attachments

    Redmine version 2.1 adds:
    groups

    Project memberships (1.4) and project files (3.4) are reached through
    project_memberships(project_id) and project_files(project_id).
    '''

    _item_managers_by_version = {
        1.0: {
            'projects': Project,
        },

        1.1: {
            'users': User,
        },

        1.3: {
            'trackers': Tracker,
            'attachments': Attachment,
        },

        1.4: {
            #roles
        },

        2.1: {
            'groups': Group,
        },
    }

    def _set_version(self, version):
        '''
        Set up this object based on the capabilities of the
        known versions of Redmine
        '''
        # Store the version we are evaluating
        self.version = version or None
        # To evaluate the version capabilities,
        # assume the best-case if no version is provided.
        version_check = version or 9999.0

        if version_check < 1.0:
            raise RedmineError('This library will only work with '
                               'Redmine version 1.0 and higher.')

        ## SECURITY AUGMENTATION
        # All versions support the key in the request
        #  (http://server/stuff.json?key=blah)
        # But versions 1.1 and higher can put the key in a header field
        # for better security.
        # If no version was provided then assume we should
        # set the key with the request.
        self.key_in_header = (version or 0.0) >= 1.1

        self.impersonation_supported = version_check >= 2.2
        self.has_project_memberships = version_check >= 1.4
        self.has_files = version_check >= 3.4

        ## ITEM MANAGERS
        # Step through all the item managers by version
        # and instatiate and item manager for that item.
        for manager_version in self._item_managers_by_version:
            if version_check >= manager_version:
                managers = self._item_managers_by_version[manager_version]
                for attribute_name, item in managers.items():
                    setattr(self, attribute_name,
                            Redmine_Items_Manager(self, item))

    def project_files(self, project_id):
        '''Manager for the files published in the given project.'''
        if not self.has_files:
            raise AttributeError('files are not available before Redmine 3.4')
        return Redmine_Items_Manager(self, File, owner=project_id)

    def project_memberships(self, project_id):
        '''Manager for the memberships of the given project.'''
        if not self.has_project_memberships:
            raise AttributeError('memberships are not available before Redmine 1.4')
        return Redmine_Items_Manager(self, Membership, owner=project_id)

    def _path(self, page, *args):
        return page % (args + (self.mime_format,))

    def get_current_user(self, **params):
        '''Return the user this connection is logged in as.'''
        response = self.get(self._path('users/current.%s'), params)
        return serializer.deserialize(User, response, self.mime_format)

    def add_user_to_group(self, group_id, user_id):
        payload = serializer.serialize_value(keys.USER_ID, user_id, self.mime_format)
        self.post(self._path('groups/%s/users.%s', group_id), payload)

    def remove_user_from_group(self, group_id, user_id):
        self.delete(self._path('groups/%s/users/%s.%s', group_id, user_id))

    def add_watcher_to_issue(self, issue_id, user_id):
        payload = serializer.serialize_value(keys.USER_ID, user_id, self.mime_format)
        self.post(self._path('issues/%s/watchers.%s', issue_id), payload)

    def remove_watcher_from_issue(self, issue_id, user_id):
        self.delete(self._path('issues/%s/watchers/%s.%s', issue_id, user_id))

    def upload_file(self, data):
        '''Send the given bytes to the server.
        Returns an Upload whose token can be attached to a new item.'''
        response = self.post(self._path('uploads.%s'), data,
                             payload_type='application/octet-stream')
        if self.readonlytest:
            return None
        return serializer.deserialize(Upload, response, self.mime_format)

    def update_attachment(self, issue_id, attachment):
        '''Change the filename or description of an issue's attachment.'''
        # Attachment updates are only accepted as JSON
        payload = serializer.serialize(
            Attachments({attachment.id: attachment}), JSON)
        self.patch('attachments/issues/%s.json' % issue_id, payload,
                   payload_type=serializer.content_type(JSON))

    def download_file(self, address):
        '''Return the bytes of a file, given its content_url.'''
        return self.download(address)

    def get_object(self, cls, id, **params):
        return Redmine_Items_Manager(self, cls).get(id, **params)

    def get_objects(self, cls, owner_id=None, **params):
        '''Return every item of the given type, fetching page after page.'''
        return Redmine_Items_Manager(self, cls, owner=owner_id).query_to_list(**params)

    def get_paginated_objects(self, cls, owner_id=None, **params):
        '''Return a single page of items (see Paginated_Objects).'''
        return Redmine_Items_Manager(self, cls, owner=owner_id).page(**params)

    def create_object(self, item, owner_id=None):
        return Redmine_Items_Manager(self, type(item), owner=owner_id).new(item)

    def update_object(self, id, item, owner_id=None):
        Redmine_Items_Manager(self, type(item), owner=owner_id).update(id, item)

    def delete_object(self, cls, id):
        Redmine_Items_Manager(self, cls).delete(id)
