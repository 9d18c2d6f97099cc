"""
Services module - the two dispatchers.

Both are stateless and fire-and-forget: results only reach the log.
"""

from wakecron.services import trigger, wakeup

__all__ = ["trigger", "wakeup"]
