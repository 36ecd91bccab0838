"""Dependency injection container.

Components are registered by type and built on first use, so nothing
touches the config file or the database until something asks for it:

    container.register_factory(DataAccess, lambda c: DataAccess(c.resolve(...)))
    access = container.resolve(DataAccess)
"""

from __future__ import annotations

import threading
from typing import Any, Callable, TypeVar

T = TypeVar("T")

Factory = Callable[["Container"], Any]


class Container:
    """Type-keyed registry of instances and lazy factories.

    A factory runs once and its result is cached. Factories may resolve
    other components; resolution holds a re-entrant lock so request
    threads never build the same component twice.
    """

    def __init__(self) -> None:
        self._factories: dict[type, Factory] = {}
        self._instances: dict[type, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, interface: type[T], instance: T) -> None:
        """Register an already built instance."""
        with self._lock:
            self._instances[interface] = instance

    def register_factory(self, interface: type[T], factory: Callable[[Container], T]) -> None:
        """Register a builder for `interface`.

        Re-registering drops the instance built by the earlier factory.
        """
        with self._lock:
            self._factories[interface] = factory
            self._instances.pop(interface, None)

    def resolve(self, interface: type[T]) -> T:
        """Return the instance for `interface`, building it on first use.

        Raises:
            KeyError: If nothing is registered for the type
        """
        with self._lock:
            try:
                return self._instances[interface]
            except KeyError:
                pass
            factory = self._factories.get(interface)
            if factory is None:
                raise KeyError(f"Nothing registered for {interface.__name__}")
            instance = self._instances[interface] = factory(self)
            return instance

    def has(self, interface: type) -> bool:
        with self._lock:
            return interface in self._instances or interface in self._factories

    def clear(self) -> None:
        """Forget every registration and built instance."""
        with self._lock:
            self._factories.clear()
            self._instances.clear()


_container: Container | None = None


def get_container() -> Container:
    """Process-wide container used when no other is passed in."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    global _container
    if _container is not None:
        _container.clear()
    _container = None
