"""
addonkit Addon System - Addon lifecycle management.

This package handles:
- package.json parsing and validation
- Registry scanning and default-addon classification
- Git-based installation through a staging directory
- Uninstallation with default-addon protection
- Defaults synchronization at startup
- Client bundling and server activation
"""

__all__ = []
