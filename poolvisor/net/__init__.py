"""
Networking helpers for the shared worker listener.
"""

from .listener import create_listener, parse_bind

__all__ = ["create_listener", "parse_bind"]
