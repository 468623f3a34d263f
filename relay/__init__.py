"""Barlink WhatsApp relay - OTP verification and notification delivery over WhatsApp."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

# Application version (SemVer)
__version__ = "1.0.0"
__license__ = "MIT"

if TYPE_CHECKING:
    from .client import RelayClient as RelayClient
    from .core.logger import setup_structured_logging as setup_structured_logging
    from .core.settings import RelaySettings as RelaySettings
    from .core.settings import get_settings as get_settings
    from .services.container import RelayServices as RelayServices

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    "RelayClient": ("relay.client", "RelayClient"),
    "setup_structured_logging": ("relay.core.logger", "setup_structured_logging"),
    "RelaySettings": ("relay.core.settings", "RelaySettings"),
    "get_settings": ("relay.core.settings", "get_settings"),
    "RelayServices": ("relay.services.container", "RelayServices"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
