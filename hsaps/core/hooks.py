"""In-process callback registry for domain events.

Usage:
    from core.hooks import on, fire

    on('notifications.created', my_handler)
    fire('notifications.created', {'user_ids': [1, 2], 'message': '...', 'link': '/tasks'})

Events:
    notifications.created   rows inserted into `notifications`
    session.logged_in       a profile finished loading its session
    session.logged_out      a profile logged out
"""

import logging

logger = logging.getLogger('hsaps.core.hooks')

_registry: dict[str, list] = {}


def on(event_type: str, callback):
    """Register a callback for an event type."""
    _registry.setdefault(event_type, []).append(callback)
    logger.debug(f"Registered hook for {event_type}: {callback.__name__}")


def fire(event_type: str, payload: dict):
    """Call all registered callbacks for event_type. A failing callback does not stop the others."""
    for cb in _registry.get(event_type, []):
        try:
            cb(payload)
        except Exception as e:
            logger.error(f"Hook error for {event_type} in {cb.__name__}: {e}", exc_info=True)


def clear(event_type: str = None):
    """Clear hooks. If event_type given, clear only that type. Used in tests."""
    if event_type:
        _registry.pop(event_type, None)
    else:
        _registry.clear()
