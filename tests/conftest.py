"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Metadata builders for user functions and skeleton instances.
- Global generator registry isolation so tests registering custom generators do not leak.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'skelgen' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from skelgen.compiler.ir import (  # noqa: E402
  ContainerParam,
  ProgramMetadata,
  ScalarParam,
  SkeletonInstance,
  SkeletonShape,
  UserFunction,
  assign_sides,
)
from skelgen.compiler.registry import _GENERATORS  # noqa: E402
from skelgen.config import RuntimeConfig  # noqa: E402
from skelgen.enums import ContainerKind, IndexingMode, SkeletonKind  # noqa: E402
from skelgen.utils.console import console  # noqa: E402

ADD_PAIR_MANIFEST = {
  "functions": [
    {
      "name": "add",
      "return_type": "float",
      "body": "\treturn a + b;",
      "elementwise": [{"name": "a", "type": "float"}, {"name": "b", "type": "float"}],
    }
  ],
  "instances": [{"skeleton": "map_pairs", "function": "add", "varity": 1, "harity": 1}],
}


def make_function(
  name="f",
  elementwise=(("a", "float"), ("b", "float")),
  varity=1,
  containers=(),
  scalars=(),
  indexing=IndexingMode.NONE,
  return_type="float",
  body="\treturn a + b;",
  double_precision=False,
  types=(),
):
  """Builds a UserFunction with sides assigned from ``varity``."""
  return UserFunction(
    name=name,
    unique_name=name,
    return_type=return_type,
    body=body,
    indexing_mode=indexing,
    requires_double_precision=double_precision,
    elwise_params=assign_sides(list(elementwise), varity),
    container_params=tuple(ContainerParam(n, t, k) for n, t, k in containers),
    scalar_params=tuple(ScalarParam(n, t) for n, t in scalars),
    referenced_types=tuple(types),
  )


def make_instance(func, varity=1, harity=1):
  """Wraps a function into a MapPairs instantiation."""
  return SkeletonInstance(SkeletonKind.MAP_PAIRS, func, SkeletonShape(varity, harity))


@pytest.fixture
def matrix_function():
  """f(a, b, m : Matrix<float>, s : int)."""
  return make_function(
    containers=(("m", "float", ContainerKind.MATRIX),),
    scalars=(("s", "int"),),
    body="\treturn a * b + skelgen_mat_proxy_float_get(m, 0, 0) + s;",
  )


@pytest.fixture
def program():
  return ProgramMetadata()


@pytest.fixture
def config(tmp_path):
  """OpenCL-only configuration writing into a temporary directory."""
  return RuntimeConfig(output_dir=tmp_path, output_name="prog", opencl=True)


@pytest.fixture
def add_manifest():
  return ADD_PAIR_MANIFEST


@pytest.fixture(autouse=True)
def isolate_generator_registry():
  """
  Ensures generators registered by a test do not leak into later tests,
  and restores the default logging threshold.
  """
  original = _GENERATORS.copy()
  yield
  _GENERATORS.clear()
  _GENERATORS.update(original)
  console.set_level(logging.INFO)
