"""Route registration helpers."""

from .meta import register_meta_routes
from .tasks import register_task_routes

__all__ = [
    "register_meta_routes",
    "register_task_routes",
]
