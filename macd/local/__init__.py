"""
Local package for the macD supervisor.

This package provides the effective configuration through the
`effective_settings` object, the config file parser and the supervisor.
"""

from .config import effective_settings

__all__ = ["effective_settings"]
