import json
import smtplib
import urllib.error
import urllib.request
from email.message import EmailMessage

from flask import current_app
from markupsafe import escape

RESEND_API_URL = 'https://api.resend.com/emails'


def _safe_header_value(value, max_length=240):
    # Prevent header injection by stripping CR/LF and collapsing whitespace.
    cleaned = ' '.join((value or '').replace('\r', ' ').replace('\n', ' ').split())
    return cleaned[:max_length]


def _send_via_resend(subject, html, recipient, reply_to):
    api_key = (current_app.config.get('RESEND_API_KEY') or '').strip()
    if not api_key:
        return None  # Not configured, fall through to SMTP

    mail_from = _safe_header_value(current_app.config.get('RESEND_FROM_EMAIL'), max_length=254)
    payload = {
        'from': mail_from,
        'to': [recipient],
        'subject': subject,
        'html': html,
    }
    if reply_to:
        payload['reply_to'] = reply_to

    req = urllib.request.Request(RESEND_API_URL, data=json.dumps(payload).encode('utf-8'), method='POST')
    req.add_header('Authorization', f'Bearer {api_key}')
    req.add_header('Content-Type', 'application/json')

    try:
        with urllib.request.urlopen(req, timeout=15):  # nosec B310
            current_app.logger.info('Resend email sent successfully.')
            return True
    except urllib.error.HTTPError as e:
        error_body = e.read().decode('utf-8', errors='replace')
        current_app.logger.error(f'Resend API error {e.code}: {error_body}')
        return False
    except Exception:
        current_app.logger.exception('Resend delivery failed, trying SMTP fallback.')
        return False


def _send_via_smtp(subject, html, recipient, reply_to):
    host = (current_app.config.get('SMTP_HOST') or '').strip()
    if not host:
        current_app.logger.info('SMTP_HOST is not configured; skipping SMTP.')
        return None

    port = int(current_app.config.get('SMTP_PORT') or 587)
    username = current_app.config.get('SMTP_USERNAME') or ''
    password = current_app.config.get('SMTP_PASSWORD') or ''
    use_ssl = bool(current_app.config.get('SMTP_USE_SSL'))
    use_tls = bool(current_app.config.get('SMTP_USE_TLS'))
    mail_from = _safe_header_value(current_app.config.get('SMTP_FROM_EMAIL') or username, max_length=254)

    message = EmailMessage()
    message['Subject'] = subject
    message['From'] = mail_from
    message['To'] = recipient
    if reply_to:
        message['Reply-To'] = reply_to
    message.set_content('This notification requires an HTML-capable mail client.')
    message.add_alternative(html, subtype='html')

    try:
        if use_ssl:
            smtp = smtplib.SMTP_SSL(host=host, port=port, timeout=12)
        else:
            smtp = smtplib.SMTP(host=host, port=port, timeout=12)

        with smtp:
            if use_tls and not use_ssl:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(message)
        return True
    except Exception:
        current_app.logger.exception('SMTP email delivery failed.')
        return False


def dispatch_notification(subject, html, reply_to=None):
    """Deliver an admin notification; returns whether any provider accepted it.

    Never raises: provider errors are logged and the next provider is tried.
    """
    recipient = _safe_header_value(current_app.config.get('NOTIFY_TO_EMAIL'), max_length=320)
    if not recipient:
        current_app.logger.info('NOTIFY_TO_EMAIL is not configured; skipping lead notification.')
        return False

    safe_subject = _safe_header_value(subject, max_length=240)
    safe_reply_to = _safe_header_value(reply_to, max_length=320) or None

    for provider in (_send_via_resend, _send_via_smtp):
        try:
            result = provider(safe_subject, html, recipient, safe_reply_to)
        except Exception:
            current_app.logger.exception('Notification provider %s failed.', provider.__name__)
            result = False
        if result:
            return True

    current_app.logger.warning('No email provider delivered the notification. Set RESEND_API_KEY or SMTP credentials.')
    return False


def _field(label, value):
    return f'<p><strong>{escape(label)}:</strong> {escape(value)}</p>'


def send_lead_notification(lead):
    subject = f'New Lead: {lead.full_name} ({lead.package_interest})'
    html = '\n'.join([
        '<div style="font-family:Arial,sans-serif;max-width:680px;margin:0 auto;padding:24px">',
        '<h2>New Consultation Inquiry</h2>',
        _field('Name', lead.full_name),
        _field('Email', lead.email),
        _field('Mobile', lead.mobile_number),
        _field('Business', lead.business_name),
        _field('Industry', lead.industry),
        _field('Package', lead.package_interest),
        _field('Budget', lead.budget_range),
        _field('Preferred Contact', lead.preferred_contact_method),
        _field('Preferred Contact Details', lead.preferred_contact_value or 'Not provided'),
        '<p><strong>Message/Goals:</strong></p>',
        f'<p>{escape(lead.message_goals)}</p>',
        '</div>',
    ])
    return dispatch_notification(subject, html, reply_to=lead.email)


def send_audit_lead_notification(lead):
    link = lead.website_or_facebook_link or ''
    subject = f'New Audit Request: {lead.full_name} ({lead.business_name})'
    html = '\n'.join([
        '<div style="font-family:Arial,sans-serif;max-width:680px;margin:0 auto;padding:24px">',
        '<h2>New Free Website Audit Request</h2>',
        _field('Name', lead.full_name),
        _field('Email', lead.email),
        _field('Business', lead.business_name),
        f'<p><strong>Website/Facebook Link:</strong> <a href="{escape(link)}">{escape(link)}</a></p>',
        '</div>',
    ])
    return dispatch_notification(subject, html, reply_to=lead.email)
