"""
CLI Command Handlers Facade.

Re-exports the handlers from `skelgen.cli.handlers` so the argument parser
(and tests patching it) reference a single module.
"""

from skelgen.cli.handlers.generate import handle_generate
from skelgen.cli.handlers.names import handle_names

__all__ = [
  "handle_generate",
  "handle_names",
]
