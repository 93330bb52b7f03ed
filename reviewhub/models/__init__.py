from .user import User
from .organization import Coalition, Organization
from .program import Program, ProgramStatus
from .candidate import Candidate
from .application import Application
from .review import ReviewRecord
from .publication import Publication, PublicationEvent
from .grant import AdminGrant
from .notification import Notification
# base and mixins are imported by the above as needed
