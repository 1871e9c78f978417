from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from fluentmap.Utils.Logger import get_logger

logger = get_logger(__name__)


class MapMethod:
    """Custom method for extending map functionality."""

    def __init__(self, name: str, method: Callable[..., Any]):
        self.name = name
        self.method = method

    def bind(self, target: Any) -> Callable[..., Any]:
        """Bind the method to a map instance."""
        def bound_method(*args: Any, **kwargs: Any) -> Any:
            return self.method(target, *args, **kwargs)

        bound_method.__name__ = self.name
        return bound_method


class MethodRegistry:
    """Registry for custom map methods."""

    def __init__(self, parent: Optional['MethodRegistry'] = None) -> None:
        self._methods: Dict[str, MapMethod] = {}
        self._parent = parent

    def register(self, name: str, method: Callable[..., Any]) -> None:
        """Register a method."""
        if not name.isidentifier():
            raise ValueError(f"Method name `{name}` is not a valid identifier")
        if not callable(method):
            raise TypeError(f"Method `{name}` must be callable")

        self._methods[name] = MapMethod(name, method)
        logger.debug("Registered map method", {'name': name})

    def get(self, name: str) -> Optional[MapMethod]:
        """Get a method by name."""
        method = self._methods.get(name)
        if method is None and self._parent is not None:
            return self._parent.get(name)
        return method

    def has(self, name: str) -> bool:
        """Check if method exists."""
        return self.get(name) is not None

    def forget(self, name: str) -> None:
        """Remove a method from this registry."""
        self._methods.pop(name, None)

    def all(self) -> Dict[str, MapMethod]:
        """Get all methods, own methods override inherited ones."""
        inherited = self._parent.all() if self._parent is not None else {}
        return {**inherited, **self._methods}


# Default registry used by Map.method()
default_registry = MethodRegistry()
