"""
Tests for Kernel and Wrapper Naming.
"""

import pytest

from skelgen.compiler.errors import NameCollisionError
from skelgen.compiler.ir import SkeletonShape
from skelgen.compiler.naming import NameRegistry, kernel_name, sanitize_identifier, wrapper_name
from skelgen.enums import SkeletonKind


@pytest.mark.parametrize(
  "raw, expected",
  [
    ("prog", "prog"),
    ("out/my-prog.cpp", "my_prog_cpp"),
    ("2fast", "_2fast"),
    ("", "_"),
  ],
)
def test_sanitize_identifier(raw, expected):
  assert sanitize_identifier(raw) == expected


def test_kernel_name_format():
  name = kernel_name("prog", SkeletonKind.MAP_PAIRS, "f", SkeletonShape(2, 3))
  assert name == "prog_MapPairsKernel_f_Varity_2_Harity_3"
  assert wrapper_name(name) == "Wrapper_prog_MapPairsKernel_f_Varity_2_Harity_3"


def test_kernel_name_deterministic():
  first = kernel_name("prog", SkeletonKind.MAP_PAIRS, "f", SkeletonShape(2, 3))
  second = kernel_name("prog", SkeletonKind.MAP_PAIRS, "f", SkeletonShape(2, 3))
  assert first == second


def test_kernel_name_distinguishes_shape_and_function():
  names = {
    kernel_name("prog", SkeletonKind.MAP_PAIRS, "f", SkeletonShape(1, 1)),
    kernel_name("prog", SkeletonKind.MAP_PAIRS, "f", SkeletonShape(1, 2)),
    kernel_name("prog", SkeletonKind.MAP_PAIRS, "g", SkeletonShape(1, 1)),
    kernel_name("prog", SkeletonKind.MAP, "f", SkeletonShape(1, 1)),
  }
  assert len(names) == 4


def test_registry_allows_same_identity_twice():
  names = NameRegistry()
  names.claim("k", ("MapPairs<f>", "f"))
  names.claim("k", ("MapPairs<f>", "f"))
  assert "k" in names
  assert len(names) == 1


def test_registry_rejects_collision():
  names = NameRegistry()
  names.claim("k", ("MapPairs<f>", "f"))
  with pytest.raises(NameCollisionError, match="'k'"):
    names.claim("k", ("MapPairs<g>", "g"))
