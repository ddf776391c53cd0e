"""
Tests for the (skeleton, backend) Generator Registry.
"""

from skelgen.compiler.backend import CompilerBackend
from skelgen.compiler.backends.opencl import MapPairsOpenCLBackend
from skelgen.compiler.registry import get_generator_class, register_generator, supported_pairs
from skelgen.enums import BackendKind, SkeletonKind


class DummyMapCuda(CompilerBackend):
  skeleton = SkeletonKind.MAP
  backend = BackendKind.CUDA

  def generate(self, instance):
    raise NotImplementedError


def test_default_pairs():
  assert get_generator_class(SkeletonKind.MAP_PAIRS, BackendKind.OPENCL) is MapPairsOpenCLBackend
  assert get_generator_class(SkeletonKind.MAP_PAIRS, BackendKind.CUDA) is None
  assert (SkeletonKind.MAP_PAIRS, BackendKind.OPENCL) in supported_pairs()


def test_register_generator():
  register_generator(DummyMapCuda)
  assert get_generator_class(SkeletonKind.MAP, BackendKind.CUDA) is DummyMapCuda


def test_registration_does_not_leak():
  """The autouse fixture restores the registry after each test."""
  assert get_generator_class(SkeletonKind.MAP, BackendKind.CUDA) is None
