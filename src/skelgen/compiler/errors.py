"""
Generator Error Taxonomy.

All failures raised by skelgen derive from :class:`SkelgenError`.

* :class:`GenerationError` and its subclasses are internal-invariant violations
  detected while producing an artifact (unresolved template slot, malformed
  metadata, unknown container kind). They abort the affected artifact and are
  never retried.
* :class:`KernelBuildError` and :class:`KernelLaunchError` are raised by the
  host dispatch layer when a device rejects a generated kernel or a launch is
  misconfigured. Both are fatal for the run.
"""

from typing import Optional


class SkelgenError(Exception):
  """Base class for every skelgen failure."""


class GenerationError(SkelgenError):
  """An artifact could not be generated."""


class TemplateError(GenerationError):
  """A template slot had no value, or a value could not be spliced safely."""


class MetadataError(GenerationError, ValueError):
  """Front-end metadata is missing, inconsistent or malformed."""


class UnknownContainerKindError(MetadataError):
  """A container parameter names a kind with no proxy layout."""


class NameCollisionError(GenerationError):
  """Two distinct skeleton instantiations derived the same kernel name."""


class KernelBuildError(SkelgenError):
  """
  A kernel failed to compile or link on a compute device.
  """

  def __init__(self, kernel_name: str, device_id: Optional[int], reason: str) -> None:
    self.kernel_name = kernel_name
    self.device_id = device_id
    self.reason = reason
    where = f" for device {device_id}" if device_id is not None else ""
    super().__init__(f"Failed to build kernel '{kernel_name}'{where}: {reason}")


class KernelLaunchError(SkelgenError):
  """
  A kernel launch was rejected (bad work sizes, argument mismatch, unknown device).
  """

  def __init__(self, kernel_name: str, device_id: Optional[int], reason: str) -> None:
    self.kernel_name = kernel_name
    self.device_id = device_id
    self.reason = reason
    where = f" on device {device_id}" if device_id is not None else ""
    super().__init__(f"Cannot launch kernel '{kernel_name}'{where}: {reason}")
