"""PropertyRegistry — name to property-factory lookup.

The registry is an explicit object handed to services; there is no
process-wide "active property". Callers choose a name per rewrite.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fusegraph.domain.errors import PropertyLookupError

if TYPE_CHECKING:
    from fusegraph.domain.property import PropertyFactory

logger = logging.getLogger(__name__)


class PropertyRegistry:
    """Maps property names to zero-argument property factories."""

    def __init__(self) -> None:
        self._factories: dict[str, PropertyFactory] = {}

    def register(self, name: str, factory: PropertyFactory, *, replace: bool = False) -> None:
        """Register *factory* under *name*.

        Raises:
            ValueError: *name* is already taken and *replace* is False.
            TypeError: *factory* is not callable.
        """
        if not callable(factory):
            raise TypeError(f"Property factory for {name!r} must be callable")
        if name in self._factories and not replace:
            raise ValueError(f"Property {name!r} is already registered")
        self._factories[name] = factory
        logger.debug("Registered property: %s", name)

    def lookup(self, name: str) -> PropertyFactory:
        """Return the factory registered under *name*.

        Raises:
            PropertyLookupError: Nothing is registered under *name*.
        """
        try:
            return self._factories[name]
        except KeyError:
            raise PropertyLookupError(name, list(self._factories)) from None

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)
