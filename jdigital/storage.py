import re
import time
import urllib.error
import urllib.parse
import urllib.request

from flask import current_app

from .errors import StorageError

STORAGE_ENV_KEYS = ('SUPABASE_URL', 'SUPABASE_SERVICE_ROLE_KEY', 'SUPABASE_STORAGE_BUCKET')
_UNSAFE_NAME_CHARS_RE = re.compile(r'[^a-zA-Z0-9.-]')


def missing_storage_env_vars():
    return [key for key in STORAGE_ENV_KEYS if not str(current_app.config.get(key) or '').strip()]


def storage_bucket():
    return str(current_app.config.get('SUPABASE_STORAGE_BUCKET') or '').strip()


def build_object_path(filename, now_ms=None):
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    safe_name = _UNSAFE_NAME_CHARS_RE.sub('-', filename or 'file').lower()
    return f'uploads/{now_ms}-{safe_name}'


def _object_url(bucket, path, public=False):
    base = str(current_app.config.get('SUPABASE_URL') or '').rstrip('/')
    quoted_path = urllib.parse.quote(path)
    if public:
        return f'{base}/storage/v1/object/public/{bucket}/{quoted_path}'
    return f'{base}/storage/v1/object/{bucket}/{quoted_path}'


def _authorized_request(url, method, data=None, content_type=None):
    key = str(current_app.config.get('SUPABASE_SERVICE_ROLE_KEY') or '').strip()
    req = urllib.request.Request(url, data=data, method=method)
    req.add_header('Authorization', f'Bearer {key}')
    req.add_header('apikey', key)
    if content_type:
        req.add_header('Content-Type', content_type)
    return req


def upload_object(bucket, path, data, content_type=None):
    """Store ``data`` at ``bucket/path`` and return its public URL."""
    req = _authorized_request(
        _object_url(bucket, path),
        'POST',
        data=data,
        content_type=content_type or 'application/octet-stream',
    )
    req.add_header('x-upsert', 'true')
    try:
        with urllib.request.urlopen(req, timeout=30):  # nosec B310
            pass
    except urllib.error.HTTPError as e:
        error_body = e.read().decode('utf-8', errors='replace')
        current_app.logger.error(f'Storage upload error {e.code}: {error_body}')
        raise StorageError(f'Storage upload failed ({e.code}).')
    except (urllib.error.URLError, OSError):
        current_app.logger.exception('Storage upload failed.')
        raise StorageError('Failed to upload file')
    return _object_url(bucket, path, public=True)


def delete_object(bucket, path):
    req = _authorized_request(_object_url(bucket, path), 'DELETE')
    try:
        with urllib.request.urlopen(req, timeout=15):  # nosec B310
            pass
    except urllib.error.HTTPError as e:
        raise StorageError(f'Storage delete failed ({e.code}).')
    except (urllib.error.URLError, OSError):
        raise StorageError('Storage delete failed.')
