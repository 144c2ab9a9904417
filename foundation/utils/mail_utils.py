"""
Mail Utilities

FLOW OVERVIEW
- `mail` is the shared Flask-Mail extension, bound in create_app().
- send_email(recipient, subject, body): single entry point; returns True/False
  and logs failures so a mail outage never fails the request that caused it.
- One helper per outgoing message: verification, password reset, participant
  approved/rejected/removed, scholar and general donation outcomes, donation
  certificates, distribution receipt reports and report card status.
- Placeholder addresses (accounts registered without an email) are skipped.
"""

import logging

from flask import current_app
from flask_mail import Mail, Message

logger = logging.getLogger(__name__)

mail = Mail()


def _frontend_url(path):
    base = current_app.config.get('FRONTEND_URL', 'http://localhost:5173').rstrip('/')
    return f'{base}{path}'


def send_email(recipient, subject, body):
    if not recipient or recipient.endswith('@placeholder.com'):
        logger.info("Skipping email '%s': no deliverable address", subject)
        return False
    try:
        msg = Message(subject, recipients=[recipient], body=body)
        mail.send(msg)
        logger.info("Sent email '%s' to %s", subject, recipient)
        return True
    except Exception:
        logger.exception("Failed to send email '%s' to %s", subject, recipient)
        return False


def send_verification_email(user):
    """Send the email verification link to a new user"""
    link = _frontend_url(f'/verify-email/{user.verification_token}')
    body = (
        f'Hello {user.name},\n\n'
        f'Please verify your account by opening this link:\n{link}\n\n'
        'If you did not create an account, you can ignore this message.'
    )
    return send_email(user.email, 'Verify Your KKMK Account', body)


def send_password_reset_email(user):
    """Send password reset email to user"""
    link = _frontend_url(f'/reset-password/{user.reset_token}')
    body = (
        f'Hello {user.name},\n\n'
        f'Reset your password using this link (valid for one hour):\n{link}\n\n'
        'If you did not request a reset, no action is needed.'
    )
    return send_email(user.email, 'Reset Your KKMK Password', body)


def send_participant_approved_email(user, event_title):
    body = f'Hello {user.name},\n\nYour participation in "{event_title}" has been approved!'
    return send_email(user.email, f'Your participation in "{event_title}" has been approved!', body)


def send_participant_rejected_email(user, event_title, reason=None):
    body = f'Hello {user.name},\n\nYour request to join "{event_title}" was not approved.'
    if reason:
        body += f'\nReason: {reason}'
    return send_email(user.email, f'Update on your participation in "{event_title}"', body)


def send_participant_removed_email(user, event_title, reason=None):
    body = f'Hello {user.name},\n\nYou have been removed from "{event_title}".'
    if reason:
        body += f'\nReason: {reason}'
    return send_email(user.email, f'Update on your participation in "{event_title}"', body)


def send_donation_verified_email(email, donor_name, scholar_name, amount):
    body = (
        f'Hello {donor_name or "donor"},\n\n'
        f'Your donation of {amount:,.2f} for {scholar_name} has been verified. Thank you!'
    )
    return send_email(email, 'Your Donation Has Been Verified', body)


def send_donation_rejected_email(email, donor_name, scholar_name, amount, reason=None):
    body = (
        f'Hello {donor_name or "donor"},\n\n'
        f'Your donation of {amount:,.2f} for {scholar_name} could not be verified.'
    )
    if reason:
        body += f'\nReason: {reason}'
    return send_email(email, 'Your Donation Status Update', body)


def send_general_donation_verified_email(email, donor_name, amount, payment_method=None):
    body = (
        f'Hello {donor_name or "donor"},\n\n'
        f'Your donation of {amount:,.2f} to the foundation has been verified. Thank you!'
    )
    if payment_method:
        body += f'\nPayment method: {payment_method}'
    return send_email(email, 'Your Donation Has Been Verified', body)


def send_general_donation_rejected_email(email, donor_name, amount, reason=None):
    body = (
        f'Hello {donor_name or "donor"},\n\n'
        f'Your donation of {amount:,.2f} to the foundation could not be verified.'
    )
    if reason:
        body += f'\nReason: {reason}'
    return send_email(email, 'Your Donation Status Update', body)


def send_donation_certificate_email(email, donor_name, amount, donation_date, donation_id):
    """Certificate of donation for a verified general donation"""
    body = (
        f'Dear {donor_name or "donor"},\n\n'
        f'This certifies that the foundation received your donation of {amount:,.2f}'
        f' on {donation_date}.\n'
        f'Certificate reference: KMF-DON-{donation_id:06d}\n\n'
        'Thank you for supporting our scholars and communities.'
    )
    return send_email(email, 'Certificate of Donation', body)


def send_distribution_report_email(recipient, recipient_name, status, item_label, message=None):
    """Tell the foundation inbox whether a recipient confirmed a distribution."""
    outcome = 'confirmed receipt of' if status == 'received' else 'reported an issue with'
    body = f'{recipient_name} has {outcome} {item_label}.'
    if message:
        body += f'\nMessage: {message}'
    return send_email(recipient, 'Distribution Receipt Update', body)


REPORT_CARD_SUBJECTS = {
    'verified': 'Your Report Card Has Been Verified',
    'rejected': 'Your Report Card Needs Attention',
    'renewal_requested': 'Action Required: Submit Your New Report Card',
}


def send_report_card_status_email(user, status, detail=None):
    subject = REPORT_CARD_SUBJECTS.get(status)
    if not subject:
        return False
    body = f'Hello {user.name},\n\n{subject}.'
    if detail:
        body += f'\n{detail}'
    return send_email(user.email, subject, body)
