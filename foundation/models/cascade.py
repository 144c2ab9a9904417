"""
Cascade Deletes

FLOW OVERVIEW
- purge_account_rows(account_type, ids): remove rows that reference accounts
  about to be deleted (notifications sent to or by them, forum activity and,
  for portal users, participations, feedback, skills, report cards, scholar
  profiles, donations made to them and goods distributed to them). Seats held
  by removed participants are released. Runs inside the caller's transaction.
- delete_users(ids, role, label): transactional delete of `users` rows plus
  every dependent row.
"""

import logging

from sqlalchemy import and_, or_

from .database import db, transaction
from ..utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def purge_account_rows(account_type, ids):
    from .notification import Notification
    from .forum import purge_forum_activity

    if not ids:
        return

    Notification.query.filter(or_(
        and_(Notification.recipient_type == account_type, Notification.user_id.in_(ids)),
        and_(Notification.actor_type == account_type, Notification.actor_id.in_(ids)),
    )).delete(synchronize_session=False)

    purge_forum_activity(account_type, ids)

    if account_type == 'user':
        _purge_user_rows(ids)


def _purge_user_rows(ids):
    from .event import (
        Event, EventParticipant, EventFeedback, DismissedFeedback,
        EventParticipantSkill, ScholarVolunteerFeedback
    )
    from .report_card import ReportCard, ReportCardHistory
    from .scholar import Scholar
    from .donation import ScholarDonation
    from .inventory import ItemDistribution

    for participant in EventParticipant.query.filter(EventParticipant.user_id.in_(ids)).all():
        Event.release_seat(participant.event_id, participant.participant_type)
        db.session.delete(participant)

    for model, column in (
        (EventFeedback, EventFeedback.user_id),
        (DismissedFeedback, DismissedFeedback.user_id),
        (EventParticipantSkill, EventParticipantSkill.user_id),
        (ScholarVolunteerFeedback, ScholarVolunteerFeedback.scholar_id),
        (ReportCard, ReportCard.user_id),
        (ReportCardHistory, ReportCardHistory.user_id),
        (ScholarDonation, ScholarDonation.scholar_id),
        (ItemDistribution, ItemDistribution.recipient_id),
        (Scholar, Scholar.user_id),
    ):
        model.query.filter(column.in_(ids)).delete(synchronize_session=False)

    # Donations made by a removed sponsor stay on the scholar's record
    ScholarDonation.query.filter(ScholarDonation.sponsor_id.in_(ids)).update(
        {'sponsor_id': None}, synchronize_session=False)


def delete_users(ids, role=None, label='User'):
    """
    Delete `users` rows (optionally restricted to one role) with all dependents.

    Returns:
        List of deleted ids

    Raises:
        NotFoundError when none of the ids match
    """
    from .user import User

    query = User.query.filter(User.id.in_(ids))
    if role:
        query = query.filter(User.role == role)
    users = query.all()
    if not users:
        if len(ids) == 1:
            raise NotFoundError(f'{label} not found')
        raise NotFoundError(f'No {label.lower()}s found with the provided IDs')

    deleted = [user.id for user in users]
    with transaction():
        purge_account_rows('user', deleted)
        for user in users:
            db.session.delete(user)
    logger.info("Deleted %s %s account(s): %s", len(deleted), role or 'user', deleted)
    return deleted
