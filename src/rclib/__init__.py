"""Core library for rcctl.

Locates the user's shell startup file and installs the rcctl shell
configuration into it. Used by the rcctl CLI.
"""

__all__ = [
    "config",
    "errors",
    "installer",
    "locator",
    "snippet",
    "writer",
]
