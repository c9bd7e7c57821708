"""Client-side data layer: guest (local file) or authenticated (REST) task lists."""
from __future__ import annotations

from .api import ApiClient, ApiError
from .board import TaskBoard
from .session import AUTHENTICATED, GUEST, AuthSession
from .storage import LocalStorage

__all__ = ["AUTHENTICATED", "GUEST", "ApiClient", "ApiError", "AuthSession", "LocalStorage", "TaskBoard"]
