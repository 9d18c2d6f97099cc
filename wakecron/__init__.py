"""
wakecron - cron-driven wake-up pings and job triggers for external services.
"""

__version__ = "0.1.0"
