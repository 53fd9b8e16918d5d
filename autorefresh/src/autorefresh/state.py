"""Shared runtime state for the AutoRefresh host.

Exposes the running RefreshScheduler and Dashboard so that request
handlers can reach them without importing `app` directly, avoiding
circular dependencies during startup.
"""

from __future__ import annotations

from typing import Optional

from .dashboard import Dashboard
from .refresh_scheduler import RefreshScheduler

# Mutable module level references, set by the application lifespan.
_scheduler: Optional[RefreshScheduler] = None
_dashboard: Optional[Dashboard] = None


def get_scheduler() -> Optional[RefreshScheduler]:
    """Return the active RefreshScheduler instance, if available."""

    return _scheduler


def set_scheduler(instance: Optional[RefreshScheduler]) -> None:
    global _scheduler
    _scheduler = instance


def get_dashboard() -> Optional[Dashboard]:
    """Return the mounted Dashboard, if available."""

    return _dashboard


def set_dashboard(instance: Optional[Dashboard]) -> None:
    global _dashboard
    _dashboard = instance


__all__ = ["get_scheduler", "set_scheduler", "get_dashboard", "set_dashboard"]
