"""Shared helpers used by actions, routes and the read path."""
import ipaddress
import re

import bleach
from flask import current_app, has_request_context, request
from slugify import slugify as _slugify

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ALLOWED_RICH_TEXT_TAGS = [
    'p', 'br', 'strong', 'em', 'b', 'i', 'u', 'blockquote', 'code',
    'ul', 'ol', 'li', 'h2', 'h3', 'h4', 'a', 'span',
]
ALLOWED_RICH_TEXT_ATTRIBUTES = {
    'a': ['href', 'title', 'target', 'rel'],
}
ALLOWED_RICH_TEXT_PROTOCOLS = ['http', 'https', 'mailto', 'tel']


def nullable(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def escape_like(value):
    """Escape SQL LIKE wildcard characters."""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def slugify(value):
    return _slugify(value or '')


def parse_list(value):
    """Split newline-delimited admin input into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in str(value).split('\n') if item.strip()]


def normalize_industry(value):
    return ' '.join((value or '').split()).lower()


def parse_int(value, default=0, min_value=None, max_value=None):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    if min_value is not None and parsed < min_value:
        return min_value
    if max_value is not None and parsed > max_value:
        return max_value
    return parsed


def parse_positive_int(value):
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if parsed <= 0:
        return None
    return parsed


def to_csv_cell(value):
    if value is None:
        return ''
    text = str(value).replace('"', '""')
    return f'"{text}"'


def sanitize_html(value, max_length=100000):
    html = (value or '').strip()
    cleaned = bleach.clean(
        html,
        tags=ALLOWED_RICH_TEXT_TAGS,
        attributes=ALLOWED_RICH_TEXT_ATTRIBUTES,
        protocols=ALLOWED_RICH_TEXT_PROTOCOLS,
        strip=True,
    )
    return cleaned[:max_length]


def normalized_ip(value):
    candidate = (value or '').split(',', 1)[0].strip()
    if not candidate:
        return ''
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return ''


def client_ip():
    if not has_request_context():
        return 'unknown'
    if current_app.config.get('TRUST_PROXY_HEADERS'):
        forwarded = normalized_ip(request.headers.get('X-Forwarded-For'))
        if forwarded:
            return forwarded
    # request.remote_addr is proxy-aware when ProxyFix is enabled by app config.
    remote_ip = normalized_ip(request.remote_addr)
    return remote_ip or 'unknown'
