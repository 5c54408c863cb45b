import time
from collections import namedtuple
from datetime import timedelta
from threading import Lock

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .models import RateLimitBucket, db, utc_now_naive

RateLimitResult = namedtuple('RateLimitResult', ['allowed', 'remaining', 'retry_after'])

CLEANUP_EVERY_CALLS = 50


class RateLimiter:
    """Per-key request quota over a time window.

    ``check`` records the call when it is allowed; denied calls are not
    recorded. ``peek`` reports the current state without recording anything.
    """

    def check(self, key, max_requests, window_seconds):
        raise NotImplementedError

    def peek(self, key, max_requests, window_seconds):
        raise NotImplementedError

    def reset(self, key):
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, clock=None):
        self._clock = clock or time.monotonic
        self._lock = Lock()
        self._hits = {}

    def _live_entries(self, key, now, window_seconds):
        window_start = now - window_seconds
        entries = [stamp for stamp in self._hits.get(key, []) if stamp > window_start]
        if entries:
            self._hits[key] = entries
        else:
            self._hits.pop(key, None)
        return entries

    def _result(self, entries, max_requests, window_seconds, now, allowed):
        remaining = max(0, max_requests - len(entries))
        retry_after = 0
        if not allowed and entries:
            retry_after = max(1, int(entries[0] + window_seconds - now + 0.999))
        return RateLimitResult(allowed, remaining, retry_after)

    def check(self, key, max_requests, window_seconds):
        now = self._clock()
        with self._lock:
            entries = self._live_entries(key, now, window_seconds)
            if len(entries) >= max_requests:
                return self._result(entries, max_requests, window_seconds, now, False)
            entries.append(now)
            self._hits[key] = entries
            return self._result(entries, max_requests, window_seconds, now, True)

    def peek(self, key, max_requests, window_seconds):
        now = self._clock()
        with self._lock:
            entries = self._live_entries(key, now, window_seconds)
            allowed = len(entries) < max_requests
            return self._result(entries, max_requests, window_seconds, now, allowed)

    def reset(self, key):
        with self._lock:
            self._hits.pop(key, None)


class DatabaseRateLimiter(RateLimiter):
    """Fixed-window counters stored in ``RateLimitBucket`` rows.

    Shared by every process that talks to the same database, so quotas hold
    when the app runs on more than one instance.
    """

    def __init__(self, scope='public', clock=None):
        self.scope = scope
        self._clock = clock or utc_now_naive
        self._calls = 0

    def _cleanup_expired_buckets(self, now):
        try:
            RateLimitBucket.query.filter(RateLimitBucket.reset_at < now).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Failed to purge expired rate limit buckets.')

    def _bucket(self, key, window_seconds, now):
        self._calls += 1
        if self._calls % CLEANUP_EVERY_CALLS == 0:
            self._cleanup_expired_buckets(now)

        bucket = RateLimitBucket.query.filter_by(scope=self.scope, key=key).first()
        if not bucket:
            bucket = RateLimitBucket(
                scope=self.scope,
                key=key,
                count=0,
                reset_at=now + timedelta(seconds=window_seconds),
            )
            db.session.add(bucket)
        elif bucket.reset_at <= now:
            bucket.count = 0
            bucket.reset_at = now + timedelta(seconds=window_seconds)
        return bucket

    def _result(self, bucket, max_requests, now, allowed):
        remaining = max(0, max_requests - bucket.count)
        retry_after = 0
        if not allowed:
            retry_after = max(1, int((bucket.reset_at - now).total_seconds()))
        return RateLimitResult(allowed, remaining, retry_after)

    def check(self, key, max_requests, window_seconds):
        now = self._clock()
        try:
            bucket = self._bucket(key, window_seconds, now)
            allowed = bucket.count < max_requests
            if allowed:
                bucket.count += 1
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Rate limit store unavailable; allowing request.')
            return RateLimitResult(True, max_requests, 0)
        return self._result(bucket, max_requests, now, allowed)

    def peek(self, key, max_requests, window_seconds):
        now = self._clock()
        try:
            bucket = RateLimitBucket.query.filter_by(scope=self.scope, key=key).first()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Rate limit store unavailable; allowing request.')
            return RateLimitResult(True, max_requests, 0)
        if not bucket or bucket.reset_at <= now:
            return RateLimitResult(True, max_requests, 0)
        allowed = bucket.count < max_requests
        return self._result(bucket, max_requests, now, allowed)

    def reset(self, key):
        try:
            bucket = RateLimitBucket.query.filter_by(scope=self.scope, key=key).first()
            if bucket:
                db.session.delete(bucket)
                db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Rate limit store unavailable; could not reset %s.', key)


def build_rate_limiter(app):
    backend = (app.config.get('RATE_LIMIT_BACKEND') or 'memory').strip().lower()
    if backend == 'database':
        return DatabaseRateLimiter()
    if backend != 'memory':
        app.logger.warning('Unknown RATE_LIMIT_BACKEND %r; using in-memory rate limiting.', backend)
    return InMemoryRateLimiter()


def get_rate_limiter():
    return current_app.extensions['rate_limiter']
