from .generate import handle_generate
from .names import handle_names

__all__ = [
  "handle_generate",
  "handle_names",
]
