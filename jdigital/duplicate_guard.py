"""Client-side guard against resubmitting the same lead form twice.

This is a convenience for submitters who double-click or retry; the server's
rate limiter remains the authoritative guard.
"""
import http.cookiejar
import json
import time
import urllib.error
import urllib.request
from threading import Lock

DUPLICATE_WINDOW_SECONDS = 30
DUPLICATE_MESSAGE = 'You already submitted this request. Please wait while we review it.'


def submission_fingerprint(values):
    normalized = {}
    for key in sorted(values or {}):
        value = values[key]
        normalized[key] = '' if value is None else str(value).strip().lower()
    return json.dumps(normalized, sort_keys=True, ensure_ascii=False)


class DuplicateSubmissionGuard:
    def __init__(self, window_seconds=DUPLICATE_WINDOW_SECONDS, clock=None):
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._lock = Lock()
        self._last = None

    def is_duplicate(self, values):
        fingerprint = submission_fingerprint(values)
        with self._lock:
            if not self._last:
                return False
            last_fingerprint, sent_at = self._last
            return last_fingerprint == fingerprint and (self._clock() - sent_at) < self.window_seconds

    def remember(self, values):
        with self._lock:
            self._last = (submission_fingerprint(values), self._clock())

    def submit(self, values, send):
        if self.is_duplicate(values):
            return {
                'success': False,
                'duplicate': True,
                'level': 'info',
                'message': DUPLICATE_MESSAGE,
            }
        result = send(values)
        if result and result.get('success'):
            self.remember(values)
        return result


class LeadFormClient:
    """Submits the public lead forms over HTTP, the way the browser form does."""

    def __init__(self, base_url, guard=None, opener=None, timeout=15):
        self.base_url = (base_url or '').rstrip('/')
        self.guard = guard or DuplicateSubmissionGuard()
        self.timeout = timeout
        self._opener = opener or urllib.request.build_opener(
            urllib.request.HTTPCookieProcessor(http.cookiejar.CookieJar())
        )
        self._csrf_token = None

    def _read_json(self, response):
        body = response.read().decode('utf-8', errors='replace')
        try:
            return json.loads(body or '{}')
        except json.JSONDecodeError:
            return {'success': False, 'message': 'Unable to submit form'}

    def _csrf(self):
        if not self._csrf_token:
            req = urllib.request.Request(f'{self.base_url}/api/csrf-token', method='GET')
            with self._opener.open(req, timeout=self.timeout) as response:  # nosec B310
                self._csrf_token = self._read_json(response).get('csrf_token')
        return self._csrf_token

    def _post(self, path, values):
        data = json.dumps(values).encode('utf-8')
        req = urllib.request.Request(f'{self.base_url}{path}', data=data, method='POST')
        req.add_header('Content-Type', 'application/json')
        req.add_header('Accept', 'application/json')
        req.add_header('X-CSRF-Token', self._csrf() or '')
        try:
            with self._opener.open(req, timeout=self.timeout) as response:  # nosec B310
                return self._read_json(response)
        except urllib.error.HTTPError as e:
            return self._read_json(e)

    def submit_lead(self, values):
        return self.guard.submit(values, lambda payload: self._post('/api/leads', payload))

    def submit_audit_lead(self, values):
        return self.guard.submit(values, lambda payload: self._post('/api/audit-leads', payload))
