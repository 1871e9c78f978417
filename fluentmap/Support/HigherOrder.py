from __future__ import annotations

from typing import Any, Callable

from fluentmap.Support.Map import Map
from fluentmap.Utils.Logger import get_logger

logger = get_logger(__name__)


class ForwardsCalls:
    """Mixin forwarding unknown method names to the items of a map."""

    def _forward(self, name: str) -> Callable[..., Any]:
        """Get a callable invoking the method on all items supporting it."""
        def forwarded(*args: Any, **kwargs: Any) -> Any:
            logger.debug("Forwarding method call to items", {'method': name, 'class': self.__class__.__name__})
            return self.call(name, *args, **kwargs)  # type: ignore[attr-defined]

        forwarded.__name__ = name
        return forwarded


class DynamicMap(ForwardsCalls, Map):
    """Map calling unknown methods on its items instead of raising.

    Registered custom methods still take precedence, e.g.
    ``DynamicMap([user1, user2]).get_name()`` returns a map of the names,
    keyed like the original items.
    """

    def __getattr__(self, name: str) -> Any:
        """Handle registered methods and forward everything else to the items."""
        if name.startswith('_'):
            raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

        method = self._registry.get(name)
        if method is not None:
            return method.bind(self)

        return self._forward(name)
