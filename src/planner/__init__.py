"""Application layer: configuration, logging, and the quick-add flow."""

from .config import CalendarConfig, Config, QuickAddConfig, ServerConfig
from .debounce import Debouncer
from .quick_add import QuickAddSession, describe_parse

__all__ = [
    "CalendarConfig",
    "Config",
    "Debouncer",
    "QuickAddConfig",
    "QuickAddSession",
    "ServerConfig",
    "describe_parse",
]
