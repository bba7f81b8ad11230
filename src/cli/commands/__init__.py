"""CLI command modules.

Command Groups:
- resource: GRAS resource deployment and rendering
"""

from .resource import resource_app

__all__ = ["resource_app"]
