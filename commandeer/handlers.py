"""
Handler-instance cache: one instance per declaring class, created on first use.
"""
import logging
import threading

from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


def _instantiate(owner, /):
    return owner()


class HandlerCache:
    """
    Get-or-create-once store of handler instances keyed by owner class.

    The lock serializes first-time creation, so concurrent dispatches of commands
    declared on the same class never build two instances. Factory failures are not
    cached and propagate to the caller.
    """

    def __init__(self, factory=Unset):
        factory = coalesce(factory, _instantiate)
        if not callable(factory):
            raise TypeError("HandlerCache() 'factory' must be callable")
        self._factory = factory
        self._instances = {}
        self._lock = threading.Lock()

    def resolve(self, owner, /):
        if not isinstance(owner, type):
            raise TypeError("HandlerCache.resolve() argument must be a class")
        try:
            return self._instances[owner]
        except KeyError:
            pass
        with self._lock:
            if owner not in self._instances:
                logger.debug("creating handler instance for %s.%s", owner.__module__, owner.__qualname__)
                self._instances[owner] = self._factory(owner)
            return self._instances[owner]

    def clear(self):
        with self._lock:
            self._instances.clear()

    def __contains__(self, owner):
        return owner in self._instances

    def __len__(self):
        return len(self._instances)

    def __repr__(self):
        return "handler-cache(%s)" % ", ".join(owner.__qualname__ for owner in self._instances)


__all__ = ("HandlerCache",)
