"""keepass-2-file - render templates with secrets pulled from a KeePass database.

Templates are Jinja2 files that call ``keepass(...)`` to look up entries; a
persistent YAML configuration lists the templates to build, default
variables and the default database.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
