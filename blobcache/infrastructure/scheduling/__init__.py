"""
Scheduling Module

Periodic cleanup of expired cache entries.
"""

from .cleanup_scheduler import CleanupScheduler

__all__ = ["CleanupScheduler"]
