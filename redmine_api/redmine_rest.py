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

# This file contains the under-the-hood functions and lower-level interactions.

import logging
import urllib.error
import urllib.parse
import urllib.request

from . import serializer
from .errors import (ConflictError, ForbiddenError, FormatError,
                     ImpersonationError, InternalServerError, NotFoundError,
                     RedmineConnectionError, RedmineError, RedmineHTTPError,
                     UnauthorizedError, ValidationError)
from .items import XML, Redmine_Item

log = logging.getLogger(__name__)


class Redmine_Items_Manager(object):
    '''Manage items within Redmine.
    This manager object is used to get many different items from within Redmine.
    The name used denotes what kind of object is returned.

    server.projects  ->  Project
    server.groups  ->  Group
    etc.

    Items that live inside a project (files, memberships) get a manager bound
    to that project:
    server.project_files('test-project')
    Any new files created with that manager will be created on that project,
    and any queries will be limited to that project.


    For the following examples, the name MANAGER will be used in place
    of this manager's name.  It may be server.projects, server.users, etc.

    Create
    ------
    Create a new item, either from an item object or from field values:
    MANAGER.new(Project(name='Test', identifier='test'))
    MANAGER.new(name='Test', identifier='test')
    The item the server sends back is returned.

    Get Item
    --------
    Items can be retreived by accessing as if it were a dictionary:
    MANAGER[ID]

    Note that projects can be retreived by either their unique identifier or number:
    >>> proj = server.projects['test-project']
    >>> proj = server.projects[10]

    Delete
    ------
    Delete an item:
    MANAGER.delete(ID)

    Update
    ------
    Update an item:
    MANAGER.update(ID, item)
    MANAGER.update(ID, key='value', key2='value2', ...)
    Only the fields that are set (and that the server accepts) are sent.

    Queries
    -------
    To run a simple query that returns all items, simply access this manager as an iterator:
    >>> for item in MANAGER:
    ...    print(item)

    For more complex queries, pass the query parameters to the manager:
    >>> for item in MANAGER(status=1):
    ...    print(item)

    Pages are fetched as the iteration goes.  A single page, along with
    the paging info the server reported, is available with:
    MANAGER.page(limit=25, offset=50)

    Any query can be returned as a list or a dictionary as well:
    MANAGER.query_to_list(<optional filter>)
    MANAGER.query_to_dict(<optional filter>)
    The full query is run, and no data is returned until the query is complete which may require multiple calls to Redmine.
    '''
    _object = Redmine_Item

    def __init__(self, redmine, item_obj=None, owner=None):
        self._redmine = redmine

        if item_obj:
            self._object = item_obj

        # Items living inside a project carry the project in their paths
        self._owner = owner

        # Grab data about the object
        self._item_type = self._object._get_type()
        self._item_name = self._object.__name__

        self._query_path = self._object._query_path
        self._item_path = self._object._item_path
        self._item_new_path = self._object._item_new_path

    def __repr__(self):
        return '<Redmine %s manager>' % self._item_type

    def __getitem__(self, key):
        # returned when self[key] is called
        try:
            return self.get(key)
        except NotFoundError:
            # Remap 404 errors to a proper dict error
            raise KeyError('%s %r not on server.' % (self._item_name, key))

    def __iter__(self):
        # Called when   for item in items:
        return self.query()

    def __call__(self, **options):
        # when called as if it were a function, perform a query and return an iterable
        # for user in users(status=1):
        return self.query(**options)

    def iteritems(self, **options):
        '''Return a query interator with (id, object) pairs.'''
        for obj in self.query(**options):
            yield (obj.id, obj)

    def query_to_dict(self, **options):
        '''Run a query and return all results as a dictionary'''
        return dict(self.iteritems(**options))

    def query_to_list(self, **options):
        '''Run a query and return all results as a list'''
        return list(self.query(**options))

    @property
    def _format(self):
        return self._redmine.mime_format

    def _path(self, template, id=None):
        if '{owner}' in template and self._owner is None:
            raise RedmineError('%s items belong to a project; '
                               'ask a project manager for them.' % self._item_name)
        return template.format(id=id, owner=self._owner, format=self._format)

    def new(self, item=None, **data):
        '''Create a new item on the server, from an item object or from
        field values.  Returns the new item as the server describes it,
        or None when the server doesn't send it back.'''
        if not self._item_new_path:
            raise AttributeError('new is not available for %s' % self._item_name)
        if item is None:
            item = self._object(**data)

        target = self._path(self._item_new_path)
        payload = serializer.serialize(item, self._format)
        response = self._redmine.post(target, payload)
        # Some items (files) come back with no content at all
        if not response.strip():
            return None
        return serializer.deserialize(self._object, response, self._format)

    def get(self, id, **params):
        '''Get a single item with the given ID'''
        if not self._item_path:
            raise AttributeError('get is not available for %s' % self._item_name)
        target = self._path(self._item_path, id)
        response = self._redmine.get(target, params)
        return serializer.deserialize(self._object, response, self._format)

    def update(self, id, item=None, **data):
        '''Update a given item with the passed item or data.'''
        if not self._item_path:
            raise AttributeError('update is not available for %s' % self._item_name)
        if item is None:
            item = self._object(**data)
        target = self._path(self._item_path, id)
        payload = serializer.serialize(item, self._format)
        self._redmine.put(target, payload)
        return None

    def delete(self, id):
        '''Delete a single item with the given ID'''
        if not self._item_path:
            raise AttributeError('delete is not available for %s' % self._item_name)
        target = self._path(self._item_path, id)
        self._redmine.delete(target)
        return None

    def page(self, **options):
        '''Get one page of items as a Paginated_Objects.'''
        if not self._query_path:
            raise AttributeError('query is not available for %s' % self._item_name)
        options.setdefault('limit', self._redmine.page_size)
        options.setdefault('offset', 0)
        target = self._path(self._query_path)
        response = self._redmine.get(target, options)
        return serializer.deserialize_list(self._object, response, self._format)

    def query(self, **options):
        '''Return an iterator for the given items.'''
        offset = options.pop('offset', 0)
        limit = options.pop('limit', self._redmine.page_size)
        while True:
            # go get the data with the given offset
            page = self.page(offset=offset, limit=limit, **options)
            for item in page:
                yield item

            # If the page was empty, we requested past the end, just exit
            if not page.objects:
                break
            if page.total_count > offset + len(page.objects):
                # moar data!
                # The server may cap the limit, so step by what came back
                offset += len(page.objects)
            else:
                break


class Redmine_WS(object):
    '''Base class to handle all the Redmine lower-level interactions.'''

    # HTTP status codes and the errors they turn into
    _http_errors = {
        401: UnauthorizedError,
        403: ForbiddenError,
        404: NotFoundError,
        409: ConflictError,
        412: ImpersonationError,
    }

    def __init__(self, url, key=None, username=None, password=None,
                 impersonate=None, mime_format=XML, page_size=25,
                 debug=False, readonlytest=False, version=None):
        self._url = url.rstrip('/')
        self._key = key
        # Fail early on a format we can't read
        serializer.get_format_codec(mime_format)
        self.mime_format = mime_format
        self.page_size = page_size
        self.debug = debug
        self.readonlytest = readonlytest
        self._set_version(version)

        if impersonate and not self.impersonation_supported:
            raise RedmineError('Impersonation requires Redmine 2.2 or later.')
        self.impersonate = impersonate

        if readonlytest:
            log.info('Redmine instance running in read only test mode.  '
                     'No data will be written to the server.')

        self._setup_authentication(username, password)

    def _setup_authentication(self, username, password):
        '''Create the opener with the given credentials.'''

        ## BUG WORKAROUND
        if self.version and self.version < 1.1:
            # Version 1.0 had a bug when using the key parameter.
            # Later versions have the opposite bug (a key in the username doesn't function)
            if not username:
                username = self._key
                self._key = None

        if not username:
            self._opener = urllib.request.build_opener()
            return
        if not password:
            password = '12345'  #the same combination on my luggage!  (required dummy value)

        # Send the credentials up front rather than waiting for a challenge
        password_mgr = urllib.request.HTTPPasswordMgrWithPriorAuth()
        password_mgr.add_password(None, self._url, username, password,
                                  is_authenticated=True)
        handler = urllib.request.HTTPBasicAuthHandler(password_mgr)

        self._opener = urllib.request.build_opener(handler)

    def _full_url(self, page):
        if '://' in page:
            return page
        return self._url + '/' + page.lstrip('/')

    def _http_error(self, error, url):
        '''Map an HTTPError onto one of our errors.'''
        code = error.code
        if code == 422:
            # The body lists what was wrong with the item
            try:
                errors = serializer.deserialize_errors(error.read(), self.mime_format)
            except FormatError:
                errors = []
            message = '; '.join(errors) or 'Unprocessable entity'
            return ValidationError(message, code, url, errors=errors)

        error_class = self._http_errors.get(code)
        if error_class is None:
            if code >= 500:
                error_class = InternalServerError
            else:
                error_class = RedmineHTTPError
        return error_class('HTTP Error %s: %s (%s)' % (code, error.reason, url),
                           code, url)

    def open_raw(self, page, parms=None, payload=None, method=None, payload_type=None):
        '''Opens a page from the server with optional content.  Returns a response file-like object'''
        parms = dict(parms or {})

        # if we're using a key, but it's not going in the header, add it to the parms array
        if self._key and not self.key_in_header:
            parms['key'] = self._key

        # encode any data
        urldata = ''
        if parms:
            urldata = '?' + urllib.parse.urlencode(parms, doseq=True)

        full_url = self._full_url(page)
        if isinstance(payload, str):
            payload = payload.encode('utf-8')

        request = urllib.request.Request(full_url + urldata, data=payload, method=method)
        log.log(logging.INFO if self.debug else logging.DEBUG,
                '%s %s', request.get_method(), full_url + urldata)

        # If the key is set and in the header, add it
        if self._key and self.key_in_header:
            request.add_header('X-Redmine-API-Key', self._key)
        if self.impersonate:
            request.add_header('X-Redmine-Switch-User', self.impersonate)
        if payload is not None:
            request.add_header('Content-Type',
                               payload_type or serializer.content_type(self.mime_format))

        try:
            return self._opener.open(request)
        except urllib.error.HTTPError as e:
            raise self._http_error(e, full_url)
        except urllib.error.URLError as e:
            raise RedmineConnectionError('Could not reach %s: %s' % (full_url, e.reason))

    def open(self, page, parms=None, payload=None, method=None, payload_type=None):
        '''Opens a page from the server with optional content.  Returns the string response.'''
        with self.open_raw(page, parms, payload, method, payload_type) as response:
            return response.read().decode('utf-8')

    def get(self, page, parms=None):
        '''Gets a page from the server - used to read Redmine items.'''
        return self.open(page, parms)

    def post(self, page, payload, parms=None, payload_type=None):
        '''Posts a payload to the server - used to make new Redmine items.  Returns the server's reply.'''
        if self.readonlytest:
            log.info('Redmine read only test: Pretending to create: %s', page)
            return payload
        return self.open(page, parms, payload, 'POST', payload_type)

    def put(self, page, payload, parms=None, payload_type=None):
        '''Puts a payload on the server - used to update Redmine items.  Returns nothing useful.'''
        if self.readonlytest:
            log.info('Redmine read only test: Pretending to update: %s', page)
            return None
        return self.open(page, parms, payload, 'PUT', payload_type)

    def patch(self, page, payload, parms=None, payload_type=None):
        '''Patches a payload on the server - used for partial updates.'''
        if self.readonlytest:
            log.info('Redmine read only test: Pretending to patch: %s', page)
            return None
        return self.open(page, parms, payload, 'PATCH', payload_type)

    def delete(self, page):
        '''Deletes a given object on the server - used to remove items from Redmine.  Use carefully!'''
        if self.readonlytest:
            log.info('Redmine read only test: Pretending to delete: %s', page)
            return None
        return self.open(page, method='DELETE')

    def download(self, address):
        '''Download the raw bytes found at address, such as a file's content_url.'''
        with self.open_raw(address) as response:
            return response.read()
