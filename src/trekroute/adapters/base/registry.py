"""Adapter Registry — Maps each experiment variant to its backend adapter.

The registry is keyed by the closed ``Variant`` enum, so a lookup can only
ever name a known backend. A variant whose adapter failed to initialise is
simply absent, and looking it up raises a ``BackendError`` subclass that
the engine reports like any other backend failure.
"""

from __future__ import annotations

import logging
from typing import Any

from trekroute.adapters.base.adapter import AdapterHealth, BackendAdapter
from trekroute.adapters.base.exceptions import ConfigurationError
from trekroute.models.experiment import Variant

logger = logging.getLogger(__name__)


class AdapterNotFoundError(ConfigurationError):
    """Raised when a variant has no initialised adapter."""


class AdapterRegistry:
    """Registry for backend adapter classes and instances.

    Example:
        >>> registry = AdapterRegistry()
        >>> registry.register(Variant.LOCAL, LocalSQLiteAdapter)
        >>> await registry.initialize_adapter(Variant.LOCAL, db_path="trek.db")
        >>> adapter = registry.get(Variant.LOCAL)
    """

    def __init__(self) -> None:
        self._classes: dict[Variant, type[BackendAdapter]] = {}
        self._instances: dict[Variant, BackendAdapter] = {}

    def register(self, variant: Variant, adapter_class: type[BackendAdapter]) -> None:
        """Register the adapter class serving ``variant``."""
        if variant in self._classes:
            logger.warning("Overwriting existing adapter registration: %s", variant.value)
        self._classes[variant] = adapter_class
        logger.info("Registered adapter: %s -> %s", variant.value, adapter_class.__name__)

    async def initialize_adapter(self, variant: Variant, **kwargs: Any) -> BackendAdapter:
        """Create and initialise the adapter for ``variant``.

        Args:
            variant: The registered variant.
            **kwargs: Configuration parameters passed to the adapter constructor.

        Raises:
            AdapterNotFoundError: If no class is registered for this variant.
            BackendError: If the adapter rejects its configuration.
        """
        if variant not in self._classes:
            raise AdapterNotFoundError(
                f"No adapter registered for variant '{variant.value}'. "
                f"Registered: {[v.value for v in self._classes]}"
            )

        adapter = self._classes[variant](**kwargs)
        await adapter.initialize()
        self._instances[variant] = adapter
        logger.info("Initialized adapter: %s", variant.value)
        return adapter

    def add(self, variant: Variant, adapter: BackendAdapter) -> None:
        """Install an already-initialised adapter instance."""
        self._classes[variant] = type(adapter)
        self._instances[variant] = adapter

    def get(self, variant: Variant) -> BackendAdapter:
        """Get the initialised adapter for ``variant``.

        Raises:
            AdapterNotFoundError: If the adapter is not initialised.
        """
        try:
            return self._instances[variant]
        except KeyError:
            raise AdapterNotFoundError(f"Adapter for variant '{variant.value}' is not initialized.") from None

    async def health_check_all(self) -> dict[str, AdapterHealth]:
        """Run health checks on all initialised adapters, keyed by variant."""
        results: dict[str, AdapterHealth] = {}
        for variant, adapter in self._instances.items():
            try:
                results[variant.value] = await adapter.health_check()
            except Exception as e:
                results[variant.value] = AdapterHealth(status="unhealthy", message=str(e))
        return results

    async def shutdown_all(self) -> None:
        """Gracefully shut down all initialised adapters."""
        for variant, adapter in self._instances.items():
            try:
                await adapter.shutdown()
                logger.info("Shut down adapter: %s", variant.value)
            except Exception:
                logger.warning("Error shutting down adapter: %s", variant.value, exc_info=True)
        self._instances.clear()

    @property
    def registered_adapters(self) -> list[str]:
        """List all registered variant keys."""
        return [v.value for v in self._classes]

    @property
    def active_adapters(self) -> list[str]:
        """List all variant keys with an initialised adapter."""
        return [v.value for v in self._instances]
