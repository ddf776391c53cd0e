"""
Slot-Filling Template Engine.

Backend templates are source text with named slots written ``${SLOT_NAME}``.
:class:`SlotTemplate` fills every slot in a single traversal of the template:
substituted values are never scanned again, so a value that happens to contain
another slot's text is emitted verbatim.

Any slot without a value, or any value supplied for a slot the template does
not have, is an internal error and fails immediately.
"""

from string import Template
from typing import List, Mapping

from skelgen.compiler.errors import TemplateError


class SlotTemplate(Template):
  """
  A ``string.Template`` restricted to braced, upper-case slot names.
  """

  braceidpattern = r"[A-Z][A-Z0-9_]*"

  def __init__(self, template: str, name: str = "template") -> None:
    super().__init__(template)
    self.name = name

  @property
  def slots(self) -> List[str]:
    """
    Slot names in order of first appearance.

    Raises:
        TemplateError: If the template holds a ``$`` that starts no valid slot.
    """
    try:
      return self.get_identifiers()
    except ValueError as e:
      raise TemplateError(f"{self.name}: malformed template ({e})") from e

  def render(self, values: Mapping[str, str]) -> str:
    """
    Fills every slot in one pass.

    Args:
        values: Slot name to replacement text.

    Returns:
        str: The rendered text.

    Raises:
        TemplateError: If a slot has no value or a value names no slot.
    """
    slots = set(self.slots)
    missing = sorted(slots - set(values))
    if missing:
      raise TemplateError(f"{self.name}: no value for slot(s) {', '.join(missing)}")
    unknown = sorted(set(values) - slots)
    if unknown:
      raise TemplateError(f"{self.name}: values supplied for unknown slot(s) {', '.join(unknown)}")

    try:
      return self.substitute(values)
    except (KeyError, ValueError) as e:
      raise TemplateError(f"{self.name}: malformed template ({e})") from e

