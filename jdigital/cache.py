import time
from threading import Lock

from flask import current_app

# Public paths whose cached payload embeds each admin-managed entity.
INVALIDATION_TABLE = {
    'settings': ('/', '/services', '/portfolio', '/pricing', '/process', '/contact', '/about'),
    'service': ('/', '/services'),
    'portfolio': ('/', '/portfolio'),
    'category': (),
    'process': ('/', '/process'),
    'pricing': ('/', '/pricing', '/contact'),
    'faq': ('/', '/pricing', '/contact'),
    'testimonial': ('/', '/about'),
    'lead': (),
    'media': (),
    'user': (),
}


class ViewCache:
    """Path-keyed cache of public page payloads with a fixed lifetime."""

    def __init__(self, ttl_seconds=300, clock=None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._lock = Lock()
        self._entries = {}

    def get(self, path):
        if self.ttl_seconds <= 0:
            return None
        with self._lock:
            entry = self._entries.get(path)
            if not entry:
                return None
            expires_at, payload = entry
            if expires_at <= self._clock():
                self._entries.pop(path, None)
                return None
            return payload

    def set(self, path, payload):
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[path] = (self._clock() + self.ttl_seconds, payload)

    def get_or_build(self, path, build):
        payload = self.get(path)
        if payload is None:
            payload = build()
            self.set(path, payload)
        return payload

    def invalidate(self, paths):
        dropped = []
        with self._lock:
            for path in paths:
                for cached_path in list(self._entries):
                    # '/' only drops the homepage; other paths drop their sub-pages too
                    if cached_path == path or (path != '/' and cached_path.startswith(path.rstrip('/') + '/')):
                        self._entries.pop(cached_path, None)
                        dropped.append(cached_path)
        return dropped

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __contains__(self, path):
        return self.get(path) is not None


def get_view_cache():
    return current_app.extensions['view_cache']


def invalidate_entity(entity):
    paths = INVALIDATION_TABLE.get(entity, ())
    if not paths:
        return []
    dropped = get_view_cache().invalidate(paths)
    if dropped:
        current_app.logger.info('Invalidated cached views for %s: %s', entity, ', '.join(sorted(dropped)))
    return dropped
