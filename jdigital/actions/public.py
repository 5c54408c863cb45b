from flask import current_app

from ..errors import RateLimited, ValidationFailed
from ..forms import AuditLeadForm, LeadForm, validate_payload
from ..models import LEAD_STATUS_NEW, LEAD_TYPE_AUDIT, LEAD_TYPE_CONSULTATION, Lead, db
from ..notifications import send_audit_lead_notification, send_lead_notification
from ..rate_limit import get_rate_limiter
from ..utils import client_ip, nullable

INVALID_SUBMISSION_MESSAGE = 'Please complete all required fields.'


def _rate_limited(key, limit_key, window_key):
    result = get_rate_limiter().check(
        key,
        int(current_app.config.get(limit_key, 5)),
        int(current_app.config.get(window_key, 60)),
    )
    if result.allowed:
        return None
    current_app.logger.info('Lead submission rate limited for key %s.', key)
    denied = RateLimited(retry_after=result.retry_after)
    return {'success': False, 'message': denied.message, 'retry_after': denied.retry_after}


def _notify(send, lead):
    # Delivery problems must never fail the submission.
    try:
        send(lead)
    except Exception:
        current_app.logger.exception('Failed to send %s lead notification email.', lead.lead_type.lower())


def submit_lead(payload, client_key=None):
    try:
        data = validate_payload(LeadForm, payload)
    except ValidationFailed as e:
        return {'success': False, 'message': INVALID_SUBMISSION_MESSAGE, 'errors': e.errors}

    denied = _rate_limited(client_key or client_ip(), 'LEAD_FORM_LIMIT', 'LEAD_FORM_WINDOW_SECONDS')
    if denied:
        return denied

    lead = Lead(
        full_name=data['full_name'],
        email=data['email'],
        mobile_number=data['mobile_number'],
        business_name=data['business_name'],
        industry=data['industry'],
        package_interest=data['package_interest'],
        budget_range=data['budget_range'],
        preferred_contact_method=data['preferred_contact_method'],
        preferred_contact_value=nullable(data['preferred_contact_value']),
        message_goals=data['message_goals'],
        status=LEAD_STATUS_NEW,
        lead_type=LEAD_TYPE_CONSULTATION,
    )
    db.session.add(lead)
    db.session.commit()

    _notify(send_lead_notification, lead)
    return {
        'success': True,
        'message': 'We received your inquiry. We will respond within 24 hours.',
        'leadId': lead.id,
    }


def submit_audit_lead(payload, client_key=None):
    try:
        data = validate_payload(AuditLeadForm, payload)
    except ValidationFailed as e:
        return {'success': False, 'message': INVALID_SUBMISSION_MESSAGE, 'errors': e.errors}

    key = f'{client_key or client_ip()}-audit'
    denied = _rate_limited(key, 'AUDIT_FORM_LIMIT', 'AUDIT_FORM_WINDOW_SECONDS')
    if denied:
        return denied

    # The short audit form shares the Lead table; uncollected fields get placeholders.
    lead = Lead(
        full_name=data['full_name'],
        email=data['email'],
        business_name=data['business_name'],
        website_or_facebook_link=data['website_or_facebook_link'],
        mobile_number='N/A',
        industry='N/A',
        package_interest='Audit',
        budget_range='N/A',
        preferred_contact_method='Email',
        preferred_contact_value=data['email'],
        message_goals='Requested free website audit.',
        status=LEAD_STATUS_NEW,
        lead_type=LEAD_TYPE_AUDIT,
    )
    db.session.add(lead)
    db.session.commit()

    _notify(send_audit_lead_notification, lead)
    return {
        'success': True,
        'message': 'Audit request received. We will reply within 24 hours.',
        'leadId': lead.id,
    }
