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

# Names of the fields as they travel over the wire.
# The same name is used for an XML element, an XML attribute and a JSON key,
# so both formats read from this one list.

API_KEY = 'api_key'
ATTACHMENTS = 'attachments'
AUTH_SOURCE_ID = 'auth_source_id'
AUTHOR = 'author'
CONTENT_TYPE = 'content_type'
CONTENT_URL = 'content_url'
CREATED_ON = 'created_on'
CUSTOM_FIELDS = 'custom_fields'
DESCRIPTION = 'description'
DIGEST = 'digest'
DOWNLOADS = 'downloads'
ERROR = 'error'
ERRORS = 'errors'
FILENAME = 'filename'
FILESIZE = 'filesize'
FIRSTNAME = 'firstname'
GROUP = 'group'
GROUPS = 'groups'
HOMEPAGE = 'homepage'
ID = 'id'
IDENTIFIER = 'identifier'
INHERITED = 'inherited'
LAST_LOGIN_ON = 'last_login_on'
LASTNAME = 'lastname'
LIMIT = 'limit'
LOGIN = 'login'
MAIL = 'mail'
MEMBERSHIPS = 'memberships'
MULTIPLE = 'multiple'
NAME = 'name'
OFFSET = 'offset'
PARENT = 'parent'
PARENT_ID = 'parent_id'
PASSWORD = 'password'
PROJECT = 'project'
ROLE = 'role'
ROLE_ID = 'role_id'
ROLE_IDS = 'role_ids'
ROLES = 'roles'
STATUS = 'status'
TOKEN = 'token'
TOTAL_COUNT = 'total_count'
TRACKER = 'tracker'
TRACKERS = 'trackers'
TYPE = 'type'
UPDATED_ON = 'updated_on'
USER = 'user'
USER_ID = 'user_id'
USER_IDS = 'user_ids'
USERS = 'users'
VALUE = 'value'
VERSION = 'version'
VERSION_ID = 'version_id'
