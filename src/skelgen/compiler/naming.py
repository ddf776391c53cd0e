"""
Kernel Naming Service.

Derives kernel and wrapper identifiers from the output base name, the skeleton
kind, the user function's unique name and the instantiation shape::

    <sanitized base>_<SkeletonTag>_<uniqueName>_Varity_<V>_Harity_<H>

Names are pure functions of their inputs, so recompiling the same program
yields the same names (incremental builds keep working). A
:class:`NameRegistry` additionally rejects two different instantiations that
would share a name within one run.
"""

import re
from pathlib import Path
from typing import Dict, Tuple

from skelgen.compiler.errors import NameCollisionError
from skelgen.compiler.ir import SkeletonShape
from skelgen.enums import SkeletonKind

WRAPPER_PREFIX = "Wrapper_"

_NON_IDENT = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(text: str) -> str:
  """
  Turns an arbitrary string (typically a file name) into a C/C++ identifier.

  Directory components are dropped, every other non-identifier character
  becomes ``_`` and a leading digit is prefixed with ``_``.

  Args:
      text: Raw name, e.g. ``"out/my-prog.cpp"``.

  Returns:
      str: A valid identifier, e.g. ``"my_prog_cpp"``.
  """
  base = Path(text).name if text else ""
  ident = _NON_IDENT.sub("_", base)
  if not ident:
    return "_"
  if ident[0].isdigit():
    ident = "_" + ident
  return ident


def kernel_name(output_base: str, skeleton: SkeletonKind, unique_name: str, shape: SkeletonShape) -> str:
  """
  Builds the kernel identifier for one skeleton instantiation.

  Args:
      output_base: The driver's output base name.
      skeleton: The skeleton kind (supplies the tag, e.g. ``MapPairsKernel``).
      unique_name: The user function's globally distinct name.
      shape: Vertical/horizontal arity.

  Returns:
      str: The kernel name.
  """
  return (
    f"{sanitize_identifier(output_base)}_{skeleton.tag}_{unique_name}"
    f"_Varity_{shape.varity}_Harity_{shape.harity}"
  )


def wrapper_name(kernel: str) -> str:
  """Name of the host dispatch wrapper for a kernel."""
  return WRAPPER_PREFIX + kernel


class NameRegistry:
  """
  Tracks the kernel names claimed during one compilation run.
  """

  def __init__(self) -> None:
    self._claimed: Dict[str, Tuple[str, str]] = {}

  def claim(self, name: str, identity: Tuple[str, str]) -> str:
    """
    Records that ``identity`` owns ``name``.

    Claiming the same name again for the same identity is allowed (the
    instantiation was discovered twice); a different identity is not.

    Args:
        name: The kernel name.
        identity: ``(skeleton/shape description, unique function name)``.

    Returns:
        str: The claimed name.

    Raises:
        NameCollisionError: If another instantiation already owns the name.
    """
    owner = self._claimed.get(name)
    if owner is not None and owner != identity:
      raise NameCollisionError(f"Kernel name '{name}' is derived by both {owner} and {identity}")
    self._claimed[name] = identity
    return name

  def __contains__(self, name: str) -> bool:
    return name in self._claimed

  def __len__(self) -> int:
    return len(self._claimed)
