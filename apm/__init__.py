"""
apm - addonkit addon management CLI tool.

Supports installation, removal, query and default-addon synchronization.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
