"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Exposes: db, transaction, the account models (User, AdminUser, StaffUser),
  events and their join tables, scholars, scholar and general donations,
  inventory and distributions, report cards, forum, notifications and page content.
"""

from .database import db, transaction
from .user import User
from .admin import AdminUser
from .staff import StaffUser
from .notification import Notification
from .event import (
    Event, EventParticipant, EventFeedback, ScholarVolunteerFeedback,
    DismissedFeedback, EventParticipantSkill
)
from .scholar import Scholar
from .donation import ScholarDonation
from .monetary_donation import MonetaryDonation
from .inventory import InventoryItem, ItemDistribution
from .report_card import ReportCard, ReportCardHistory
from .forum import (
    ForumPost, ForumComment, ForumPoll, ForumPollOption,
    ForumPostLike, ForumCommentLike, ForumPollVote
)
from .page_content import PageContent

__all__ = [
    'db',
    'transaction',
    'User',
    'AdminUser',
    'StaffUser',
    'Notification',
    'Event',
    'EventParticipant',
    'EventFeedback',
    'ScholarVolunteerFeedback',
    'DismissedFeedback',
    'EventParticipantSkill',
    'Scholar',
    'ScholarDonation',
    'MonetaryDonation',
    'InventoryItem',
    'ItemDistribution',
    'ReportCard',
    'ReportCardHistory',
    'ForumPost',
    'ForumComment',
    'ForumPoll',
    'ForumPollOption',
    'ForumPostLike',
    'ForumCommentLike',
    'ForumPollVote',
    'PageContent'
]
