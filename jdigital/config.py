import os
from urllib.parse import urlparse

basedir = os.path.abspath(os.path.dirname(__file__))


def _is_managed_runtime():
    return bool(
        os.environ.get('RAILWAY_ENVIRONMENT')
        or os.environ.get('RENDER')
        or os.environ.get('VERCEL')
        or os.environ.get('VERCEL_ENV')
    )


def _is_production_runtime():
    flask_env = (os.environ.get('FLASK_ENV') or '').strip().lower()
    vercel_env = (os.environ.get('VERCEL_ENV') or '').strip().lower()
    return flask_env == 'production' or vercel_env == 'production'


def _as_bool(value, default=False):
    if value is None:
        return default
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _database_url():
    raw = (os.environ.get('DATABASE_URL') or '').strip()
    if raw.startswith('postgres://'):
        raw = raw.replace('postgres://', 'postgresql://', 1)
    if raw:
        return raw
    return 'sqlite:///' + os.path.join(basedir, 'site.db')


def _database_engine_options(database_url):
    if database_url.startswith('sqlite'):
        return {}
    options = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }
    parsed = urlparse(database_url)
    if parsed.scheme.startswith('postgresql'):
        connect_timeout_seconds = max(1, _as_int(os.environ.get('DB_CONNECT_TIMEOUT_SECONDS'), 5))
        statement_timeout_ms = max(1000, _as_int(os.environ.get('DB_STATEMENT_TIMEOUT_MS'), 8000))
        options['connect_args'] = {
            'connect_timeout': connect_timeout_seconds,
            'options': f'-c statement_timeout={statement_timeout_ms}',
        }
    return options


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.environ.get('NEXTAUTH_SECRET') or ''
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = _database_engine_options(SQLALCHEMY_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max upload
    MAX_UPLOAD_IMAGE_PIXELS = _as_int(os.environ.get('MAX_UPLOAD_IMAGE_PIXELS'), 40_000_000)
    ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'pdf'}
    ALLOWED_UPLOAD_MIME_TYPES = {
        'image/png',
        'image/jpeg',
        'image/gif',
        'image/webp',
        'application/pdf',
    }

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = _as_bool(os.environ.get('SESSION_COOKIE_SECURE'), _is_production_runtime())
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_SECURE = SESSION_COOKIE_SECURE
    TRUST_PROXY_HEADERS = _as_bool(os.environ.get('TRUST_PROXY_HEADERS'), _is_managed_runtime())
    APP_BASE_URL = (os.environ.get('APP_BASE_URL') or '').rstrip('/')
    HSTS_ENABLED = _as_bool(os.environ.get('HSTS_ENABLED'), True)
    HSTS_MAX_AGE = _as_int(os.environ.get('HSTS_MAX_AGE'), 31536000)

    ADMIN_EMAIL = (os.environ.get('ADMIN_EMAIL') or 'admin@jdigital.local').strip()
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or ''
    SEED_DEFAULT_CONTENT = _as_bool(os.environ.get('SEED_DEFAULT_CONTENT'), True)
    ADMIN_LOGIN_LIMIT = _as_int(os.environ.get('ADMIN_LOGIN_LIMIT'), 5)
    ADMIN_LOGIN_WINDOW_SECONDS = _as_int(os.environ.get('ADMIN_LOGIN_WINDOW_SECONDS'), 300)

    RATE_LIMIT_BACKEND = (os.environ.get('RATE_LIMIT_BACKEND') or 'memory').strip().lower()
    LEAD_FORM_LIMIT = _as_int(os.environ.get('LEAD_FORM_LIMIT'), 5)
    LEAD_FORM_WINDOW_SECONDS = _as_int(os.environ.get('LEAD_FORM_WINDOW_SECONDS'), 60)
    AUDIT_FORM_LIMIT = _as_int(os.environ.get('AUDIT_FORM_LIMIT'), 3)
    AUDIT_FORM_WINDOW_SECONDS = _as_int(os.environ.get('AUDIT_FORM_WINDOW_SECONDS'), 60)

    # In-process page cache; keep at 0 when running more than one worker.
    PUBLIC_CACHE_SECONDS = _as_int(os.environ.get('PUBLIC_CACHE_SECONDS'), 0)
    PUBLIC_CACHE_CONTROL = (
        os.environ.get('PUBLIC_CACHE_CONTROL') or 'public, max-age=120, s-maxage=300'
    ).strip()

    RESEND_API_KEY = (os.environ.get('RESEND_API_KEY') or '').strip()
    RESEND_FROM_EMAIL = (os.environ.get('RESEND_FROM_EMAIL') or 'J-Digital Leads <onboarding@resend.dev>').strip()
    SMTP_HOST = (os.environ.get('SMTP_HOST') or '').strip()
    SMTP_PORT = _as_int(os.environ.get('SMTP_PORT'), 587)
    SMTP_USERNAME = (os.environ.get('SMTP_USERNAME') or os.environ.get('SMTP_USER') or '').strip()
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD') or os.environ.get('SMTP_PASS') or ''
    SMTP_USE_TLS = _as_bool(os.environ.get('SMTP_USE_TLS'), True)
    SMTP_USE_SSL = _as_bool(os.environ.get('SMTP_USE_SSL'), SMTP_PORT == 465)
    SMTP_FROM_EMAIL = (os.environ.get('SMTP_FROM_EMAIL') or SMTP_USERNAME or RESEND_FROM_EMAIL).strip()
    NOTIFY_TO_EMAIL = (os.environ.get('NOTIFY_TO_EMAIL') or '').strip()

    SUPABASE_URL = (os.environ.get('SUPABASE_URL') or '').rstrip('/')
    SUPABASE_SERVICE_ROLE_KEY = (os.environ.get('SUPABASE_SERVICE_ROLE_KEY') or '').strip()
    SUPABASE_STORAGE_BUCKET = (os.environ.get('SUPABASE_STORAGE_BUCKET') or '').strip()

    SENTRY_DSN = (os.environ.get('SENTRY_DSN') or '').strip()
    SENTRY_ENVIRONMENT = (os.environ.get('SENTRY_ENVIRONMENT') or '').strip()
    SENTRY_TRACES_SAMPLE_RATE = _as_float(os.environ.get('SENTRY_TRACES_SAMPLE_RATE'), 0.0)
    LOG_JSON = _as_bool(os.environ.get('LOG_JSON'), True)
    LOG_LEVEL = (os.environ.get('LOG_LEVEL') or 'INFO').strip().upper()
