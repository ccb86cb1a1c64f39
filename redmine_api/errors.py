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


class RedmineError(Exception):
    pass


class FormatError(RedmineError):
    '''The server sent something that can't be read as the expected item.'''
    pass


class UnsupportedTypeError(RedmineError):
    '''No codec is registered for the requested item type and format.'''
    pass


class RedmineConnectionError(RedmineError):
    pass


class RedmineHTTPError(RedmineError):
    '''An error status came back from the server.'''
    code = None

    def __init__(self, message, code=None, url=None):
        super(RedmineHTTPError, self).__init__(message)
        if code is not None:
            self.code = code
        self.url = url


class UnauthorizedError(RedmineHTTPError):
    code = 401


class ForbiddenError(RedmineHTTPError):
    code = 403


class NotFoundError(RedmineHTTPError):
    code = 404


class ConflictError(RedmineHTTPError):
    code = 409


class ImpersonationError(RedmineHTTPError):
    '''The user to impersonate doesn't exist or isn't active.'''
    code = 412


class ValidationError(RedmineHTTPError):
    '''The server refused the item, listing what was wrong with it.'''
    code = 422

    def __init__(self, message, code=None, url=None, errors=None):
        super(ValidationError, self).__init__(message, code, url)
        self.errors = errors or []


class InternalServerError(RedmineHTTPError):
    code = 500
