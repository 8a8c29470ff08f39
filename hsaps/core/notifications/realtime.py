"""In-process realtime feed for notification rows.

Each subscriber owns a bounded queue scoped to one user id. `publish`
pushes a row to every subscriber of that user; delivery is best-effort and a
full queue drops the event (the next list fetch reconciles).
"""

import json
import logging
import queue
import threading

logger = logging.getLogger('hsaps.core.notifications.realtime')

_QUEUE_SIZE = 100
KEEPALIVE_SECONDS = 25


class Subscription:
    """One open stream for one user."""

    def __init__(self, hub, user_id):
        self.hub = hub
        self.user_id = user_id
        self.queue = queue.Queue(maxsize=_QUEUE_SIZE)
        self.closed = False

    def get(self, timeout=None):
        """Next event or None on timeout/close."""
        if self.closed:
            return None
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self):
        if not self.closed:
            self.closed = True
            self.hub.unsubscribe(self)


class RealtimeHub:

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[int, list[Subscription]] = {}

    def subscribe(self, user_id) -> Subscription:
        sub = Subscription(self, user_id)
        with self._lock:
            self._subscribers.setdefault(user_id, []).append(sub)
        logger.debug(f'Realtime subscribe: user={user_id}')
        return sub

    def unsubscribe(self, sub: Subscription):
        with self._lock:
            subs = self._subscribers.get(sub.user_id, [])
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._subscribers.pop(sub.user_id, None)

    def close_user(self, user_id):
        """Close every open stream of a user (logout)."""
        with self._lock:
            subs = self._subscribers.pop(user_id, [])
        for sub in subs:
            sub.closed = True
            try:
                sub.queue.put_nowait(None)
            except queue.Full:
                pass
        return len(subs)

    def subscriber_count(self, user_id) -> int:
        with self._lock:
            return len(self._subscribers.get(user_id, []))

    def publish(self, user_id, event: dict) -> int:
        """Deliver an event to the user's open streams. Returns how many received it."""
        with self._lock:
            subs = list(self._subscribers.get(user_id, []))
        delivered = 0
        for sub in subs:
            try:
                sub.queue.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.warning(f'Realtime queue full, event dropped: user={user_id}')
        return delivered


hub = RealtimeHub()


def format_sse(event: dict, event_type='notification') -> str:
    return f'event: {event_type}\ndata: {json.dumps(event, ensure_ascii=False, default=str)}\n\n'


def stream(sub: Subscription, keepalive=KEEPALIVE_SECONDS):
    """Generator of SSE frames for a subscription. Ends when the subscription closes."""
    try:
        yield 'event: ready\ndata: {}\n\n'
        while not sub.closed:
            event = sub.get(timeout=keepalive)
            if event is None:
                if sub.closed:
                    break
                yield ': keepalive\n\n'
                continue
            yield format_sse(event)
    finally:
        sub.close()
