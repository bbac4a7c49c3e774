from .checkin import CheckInValidator
from .feedback import FeedbackAggregator
from .invitation_broker import InvitationBroker
from .registration_store import RegistrationStore

__all__ = [
    "CheckInValidator",
    "FeedbackAggregator",
    "InvitationBroker",
    "RegistrationStore",
]
