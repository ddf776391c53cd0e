"""
Tests for the Host Dispatch Cache.

Uses a recording fake in place of a device runtime.

Verifies:
1. One build per device, exactly once even under concurrent initialize().
2. Build failures are fatal and leave nothing cached.
3. Launch validation (work sizes, argument count, unknown device).
"""

import threading
import time

import pytest

from skelgen.compiler.errors import KernelBuildError, KernelLaunchError
from skelgen.compiler.ir import GeneratedArtifact, KernelArg
from skelgen.runtime.dispatch import KernelCache


class FakeBuilder:
  def __init__(self, devices=2, fail_on=None, delay=0.0):
    self.devices = devices
    self.fail_on = fail_on
    self.delay = delay
    self.attempts = 0
    self.builds = []
    self.released = []
    self.launches = []
    self._lock = threading.Lock()

  def device_count(self):
    return self.devices

  def build(self, device_id, kernel_name, source):
    time.sleep(self.delay)
    self.attempts += 1
    if device_id == self.fail_on:
      raise RuntimeError("CL_BUILD_PROGRAM_FAILURE")
    with self._lock:
      self.builds.append(device_id)
    return f"{kernel_name}@{device_id}"

  def enqueue(self, device_id, kernel, global_size, local_size, args):
    self.launches.append((device_id, kernel, global_size, local_size, args))
    return "event"

  def release(self, kernel):
    self.released.append(kernel)


@pytest.fixture
def artifact(tmp_path):
  signature = [KernelArg("a", True), KernelArg("output", True), KernelArg("n", False)]
  return GeneratedArtifact("k", "Wrapper_k", "", tmp_path / "k.inl", "__kernel void k() {}", signature)


def test_initialize_builds_every_device_once(artifact):
  builder = FakeBuilder(devices=3)
  cache = KernelCache(artifact, builder)

  cache.initialize()
  cache.initialize()

  assert builder.builds == [0, 1, 2]
  assert cache.initialized
  assert cache.device_ids == [0, 1, 2]
  assert cache.kernel(1) == "k@1"


def test_concurrent_initialize_builds_once(artifact):
  builder = FakeBuilder(devices=2, delay=0.01)
  cache = KernelCache(artifact, builder)

  threads = [threading.Thread(target=cache.initialize) for _ in range(8)]
  for t in threads:
    t.start()
  for t in threads:
    t.join()

  assert sorted(builder.builds) == [0, 1]


def test_build_failure_is_fatal(artifact):
  builder = FakeBuilder(devices=3, fail_on=1)
  cache = KernelCache(artifact, builder)

  with pytest.raises(KernelBuildError, match="for device 1: CL_BUILD_PROGRAM_FAILURE") as exc:
    cache.initialize()

  assert exc.value.device_id == 1
  assert builder.released == ["k@0"]
  assert not cache.initialized
  assert cache.device_ids == []


def test_device_limit(artifact):
  cache = KernelCache(artifact, FakeBuilder(devices=4), max_devices=2)
  with pytest.raises(KernelBuildError, match="at most 2"):
    cache.initialize()


def test_launch(artifact):
  builder = FakeBuilder()
  cache = KernelCache(artifact, builder)
  cache.initialize()

  assert cache.launch(1, 64, 256, ["buf_a", "buf_out", 100]) == "event"
  assert builder.launches == [(1, "k@1", 256, 64, ["buf_a", "buf_out", 100])]


@pytest.mark.parametrize("local_size, global_size", [(0, 64), (64, 0), (64, 100)])
def test_launch_rejects_bad_work_sizes(artifact, local_size, global_size):
  cache = KernelCache(artifact, FakeBuilder())
  cache.initialize()
  with pytest.raises(KernelLaunchError):
    cache.launch(0, local_size, global_size, [1, 2, 3])


def test_launch_rejects_argument_count(artifact):
  cache = KernelCache(artifact, FakeBuilder())
  cache.initialize()
  with pytest.raises(KernelLaunchError, match="expected 3 arguments, got 2"):
    cache.launch(0, 1, 1, [1, 2])


def test_launch_unknown_device(artifact):
  cache = KernelCache(artifact, FakeBuilder(devices=1))
  cache.initialize()
  with pytest.raises(KernelLaunchError, match="on device 5"):
    cache.launch(5, 1, 1, [1, 2, 3])


def test_release_and_reinitialize(artifact):
  builder = FakeBuilder(devices=2)
  cache = KernelCache(artifact, builder)
  cache.initialize()
  cache.release()

  assert sorted(builder.released) == ["k@0", "k@1"]
  assert not cache.initialized
  with pytest.raises(KernelLaunchError):
    cache.kernel(0)

  cache.initialize()
  assert builder.builds == [0, 1, 0, 1]


def test_build_failure_is_kept_until_release(artifact):
  builder = FakeBuilder(devices=2, fail_on=1)
  cache = KernelCache(artifact, builder)

  with pytest.raises(KernelBuildError) as first:
    cache.initialize()
  with pytest.raises(KernelBuildError) as second:
    cache.initialize()

  assert second.value is first.value
  assert builder.attempts == 2
  assert builder.builds == [0]

  builder.fail_on = None
  cache.release()
  cache.initialize()
  assert cache.initialized
  assert builder.builds == [0, 0, 1]


def test_device_limit_failure_is_kept(artifact):
  builder = FakeBuilder(devices=4)
  cache = KernelCache(artifact, builder, max_devices=2)

  for _ in range(2):
    with pytest.raises(KernelBuildError, match="at most 2"):
      cache.initialize()
  assert builder.attempts == 0
