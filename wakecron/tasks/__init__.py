"""
Tasks module - cron table and in-process scheduler.

Each cron fire dispatches one wake-up ping or one job trigger.
"""

from wakecron.tasks import jobs, schedule

__all__ = ["jobs", "schedule"]
