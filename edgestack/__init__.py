"""edgestack - interactive edge proxy stack bootstrapper.

Assigns CDN and direct transport roles to domains, renders the matching
compose and proxy templates, and optionally launches the generated stacks.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
