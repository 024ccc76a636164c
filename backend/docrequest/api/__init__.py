"""API module - Routes, dependencies and the response envelope"""
from .deps import get_container, get_correlation_id_dep

__all__ = ["get_container", "get_correlation_id_dep"]
