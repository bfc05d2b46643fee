"""
addonkit Core - Event bus, host hooks, locks, subprocesses and logging.
"""

__all__ = []
