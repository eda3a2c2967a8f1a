"""
Lifecycle hooks fired by the connection manager and handles.
Register with the decorator: @db.hook("database_connected").
"""
import logging

logger = logging.getLogger(__name__)

HOOK_EVENTS = (
    "database_connected",
    "database_connection_lost",
    "database_connection_failed",
    "database_error",
)


class HookDispatcher:
    def __init__(self):
        self._callbacks = {event: [] for event in HOOK_EVENTS}

    def _check_event(self, event):
        if event not in self._callbacks:
            raise ValueError(f"Unknown database hook '{event}'; expected one of {', '.join(HOOK_EVENTS)}")

    def register(self, event, fn):
        self._check_event(event)
        self._callbacks[event].append(fn)
        return fn

    def hook(self, event):
        """Decorator form of register()."""
        self._check_event(event)

        def decorator(fn):
            return self.register(event, fn)

        return decorator

    def fire(self, event, *args):
        callbacks = self._callbacks.get(event, ())
        if callbacks:
            logger.debug("Firing %s hook (%d callback(s))", event, len(callbacks))
        for fn in tuple(callbacks):
            fn(*args)
