"""Base adapter interface — Abstract classes for backend connectors."""

from trekroute.adapters.base.adapter import AdapterHealth, BackendAdapter
from trekroute.adapters.base.registry import AdapterRegistry

__all__ = ["AdapterHealth", "AdapterRegistry", "BackendAdapter"]
