'''Python Redmine Web Services Library

This Python library facilitates creating, reading, updating and deleting content from a Redmine_ installation through the REST API.

Communications are performed via HTTP/S, freeing up the need for the Python script to run on the same machine as the Redmine installation.
Both the XML and the JSON flavours of the REST interface are supported.

LICENSE
+++++++

  This program is free software: you can redistribute it and/or modify
  it under the terms of the GNU General Public License as published by
  the Free Software Foundation, either version 3 of the License, or
  (at your option) any later version.

  This program is distributed in the hope that it will be useful,
  but WITHOUT ANY WARRANTY; without even the implied warranty of
  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
  GNU General Public License for more details.

  You should have received a copy of the GNU General Public License
  along with this program.  If not, see <http://www.gnu.org/licenses/>.

Set up the Connection
+++++++++++++++++++++

Make an instance that represents the server you want to connect to.  Use a username and password,
or better yet the API key shown on your My Account page.

::

   >>> demo = Redmine('http://demo.redmine.org', key='701c0aec4330fb2f1db944f1808e1e987050c7f5', version=3.4)
   >>> demo_json = Redmine('http://demo.redmine.org', username='pyredmine', password='password', mime_format='json')

Telling the object what version your Redmine server runs enables the right item managers and lets
the key travel in a header instead of the URL.


Projects
++++++++

::

   >>> project = demo.projects['demoproject']
   >>> project.id
   393
   >>> project.trackers
   [<Redmine tracker #1 - Bug>, <Redmine tracker #2 - Feature>]
   >>> project.custom_fields['Customer']
   'John Cleese'

   >>> for proj in demo.projects:
   ...   print("%s : %s" % (proj.name, proj.homepage))

   >>> demo.projects.new(name='Dead Parrot Society', identifier='parrot')
   <Redmine project #394 "parrot">
   >>> demo.projects.update(394, description='Pining for the fjords')
   >>> demo.projects.delete(394)

Iterating fetches one page after another (page_size items at a time) until the server has
returned everything.  A single page and its paging information can be had with:

::

   >>> page = demo.projects.page(offset=25, limit=25)
   >>> page.total_count, page.offset, page.limit
   (80, 25, 25)


Groups, Users, Memberships and Files
++++++++++++++++++++++++++++++++++++

::

   >>> demo.get_current_user()
   <Redmine user #5>
   >>> demo.add_user_to_group(group_id=3, user_id=5)
   >>> demo.remove_user_from_group(group_id=3, user_id=5)
   >>> demo.add_watcher_to_issue(issue_id=35178, user_id=5)

   >>> for membership in demo.project_memberships('demoproject'):
   ...   print(membership.user, membership.roles)

   >>> upload = demo.upload_file(open('parrot.png', 'rb').read())
   >>> demo.project_files('demoproject').new(File(token=upload.token, filename='parrot.png'))
   >>> demo.download_file(some_file.content_url)


Errors
++++++

Anything that goes wrong raises a RedmineError.  HTTP failures raise one of its RedmineHTTPError
subclasses (NotFoundError, ForbiddenError, ValidationError, ...), and replies that can't be
understood raise a FormatError.

.. _Redmine: http://www.redmine.org/
'''

from .errors import (RedmineError, FormatError, UnsupportedTypeError,
                     RedmineConnectionError, RedmineHTTPError,
                     UnauthorizedError, ForbiddenError, NotFoundError,
                     ConflictError, ImpersonationError, ValidationError,
                     InternalServerError)
from .items import XML, JSON, Redmine_Item, Identifiable_Name, Custom_Fields
from .serializer import (Paginated_Objects, serialize, deserialize,
                         deserialize_list, register)
from .redmine import (Redmine, Project, Project_Tracker, Tracker, File,
                      Attachment, Attachments, Upload, Group, Group_User,
                      User_Group, Membership, Membership_Role, Custom_Field,
                      User)

__all__ = ['Redmine', 'Redmine_Item', 'Identifiable_Name', 'Custom_Fields',
           'Paginated_Objects', 'serialize', 'deserialize', 'deserialize_list',
           'register', 'XML', 'JSON',
           'Project', 'Project_Tracker', 'Tracker', 'File', 'Attachment',
           'Attachments', 'Upload', 'Group', 'Group_User', 'User_Group',
           'Membership', 'Membership_Role', 'Custom_Field', 'User',
           'RedmineError', 'FormatError', 'UnsupportedTypeError',
           'RedmineConnectionError', 'RedmineHTTPError', 'UnauthorizedError',
           'ForbiddenError', 'NotFoundError', 'ConflictError',
           'ImpersonationError', 'ValidationError', 'InternalServerError']
