"""
Host Dispatch Cache.

Python counterpart of the generated C++ wrapper class, for hosts that drive
generated kernels from Python (e.g. through an OpenCL binding). A
:class:`KernelCache` owns the compiled kernel of one artifact on every device:

* ``initialize()`` builds the kernel once per device. The build runs under a
  lock, so concurrent first calls build exactly once and later calls return
  immediately. A failure on any device is fatal and leaves the cache empty.
  The failure is kept: later calls re-raise it without building again.
* ``launch(...)`` checks the work-size configuration and the argument count
  against the artifact's kernel signature, then enqueues. It does not wait
  for completion.
* ``release()`` frees every kernel and clears a kept failure; the cache may
  be initialized again.

Device access goes through a :class:`KernelBuilder`, so any runtime (or a
test double) can be plugged in.
"""

import threading
from typing import Any, Dict, List, Optional, Protocol, Sequence

from skelgen.compiler.errors import KernelBuildError, KernelLaunchError
from skelgen.compiler.ir import GeneratedArtifact
from skelgen.utils.console import log_debug


class KernelBuilder(Protocol):
  """Device runtime operations needed by the cache."""

  def device_count(self) -> int:
    """Number of compute devices available."""
    ...

  def build(self, device_id: int, kernel_name: str, source: str) -> Any:
    """Compiles ``source`` on a device and returns the kernel handle."""
    ...

  def enqueue(self, device_id: int, kernel: Any, global_size: int, local_size: int, args: List[Any]) -> Any:
    """Binds ``args`` and enqueues the kernel; returns an event or None."""
    ...

  def release(self, kernel: Any) -> None:
    """Frees a kernel handle."""
    ...


class KernelCache:
  """
  Builds, caches and launches one generated kernel across devices.
  """

  def __init__(self, artifact: GeneratedArtifact, builder: KernelBuilder, max_devices: Optional[int] = None) -> None:
    """
    Args:
        artifact: The generated artifact (kernel source and signature).
        builder: Device runtime adapter.
        max_devices: Optional upper bound on the device count.
    """
    self.artifact = artifact
    self.builder = builder
    self.max_devices = max_devices
    self._lock = threading.Lock()
    self._kernels: Dict[int, Any] = {}
    self._initialized = False
    self._failure: Optional[KernelBuildError] = None

  @property
  def kernel_name(self) -> str:
    return self.artifact.kernel_name

  @property
  def initialized(self) -> bool:
    return self._initialized

  @property
  def device_ids(self) -> List[int]:
    with self._lock:
      return sorted(self._kernels)

  def initialize(self) -> None:
    """
    Builds the kernel for every device on first call; later calls are no-ops.
    A failed build is re-raised by every later call until :meth:`release`.

    Raises:
        KernelBuildError: If the device count exceeds the limit or any build fails.
    """
    with self._lock:
      if self._initialized:
        return
      if self._failure is not None:
        raise self._failure

      count = self.builder.device_count()
      if self.max_devices is not None and count > self.max_devices:
        reason = f"{count} devices found, at most {self.max_devices} supported"
        self._failure = KernelBuildError(self.kernel_name, None, reason)
        raise self._failure

      built: Dict[int, Any] = {}
      for device_id in range(count):
        try:
          built[device_id] = self.builder.build(device_id, self.kernel_name, self.artifact.kernel_source)
        except KernelBuildError as e:
          self._release_all(built)
          self._failure = e
          raise
        except Exception as e:
          self._release_all(built)
          self._failure = KernelBuildError(self.kernel_name, device_id, str(e))
          raise self._failure from e
        log_debug(f"Built {self.kernel_name} for device {device_id}")

      self._kernels = built
      self._initialized = True

  def kernel(self, device_id: int) -> Any:
    """
    The compiled kernel for a device.

    Raises:
        KernelLaunchError: If no kernel was built for the device.
    """
    with self._lock:
      try:
        return self._kernels[device_id]
      except KeyError:
        raise KernelLaunchError(self.kernel_name, device_id, "no kernel built for this device") from None

  def launch(self, device_id: int, local_size: int, global_size: int, args: Sequence[Any]) -> Any:
    """
    Enqueues the kernel over ``global_size`` work items in groups of ``local_size``.

    Args:
        device_id: Target device ordinal.
        local_size: Work-group size.
        global_size: Total work items; must be a multiple of ``local_size``.
        args: Marshaled arguments in kernel signature order.

    Returns:
        Any: Whatever the builder's ``enqueue`` returns (typically an event).

    Raises:
        KernelLaunchError: On invalid work sizes, an argument count mismatch,
            or an unknown device.
    """
    if local_size < 1 or global_size < 1:
      raise KernelLaunchError(
        self.kernel_name, device_id, f"work sizes must be positive (global {global_size}, local {local_size})"
      )
    if global_size % local_size != 0:
      raise KernelLaunchError(
        self.kernel_name, device_id, f"global size {global_size} is not a multiple of local size {local_size}"
      )

    expected = len(self.artifact.kernel_signature)
    if len(args) != expected:
      raise KernelLaunchError(self.kernel_name, device_id, f"expected {expected} arguments, got {len(args)}")

    kernel = self.kernel(device_id)
    return self.builder.enqueue(device_id, kernel, global_size, local_size, list(args))

  def release(self) -> None:
    """Frees every compiled kernel and returns the cache to its initial state."""
    with self._lock:
      self._release_all(self._kernels)
      self._kernels = {}
      self._initialized = False
      self._failure = None

  def _release_all(self, kernels: Dict[int, Any]) -> None:
    for handle in kernels.values():
      self.builder.release(handle)
