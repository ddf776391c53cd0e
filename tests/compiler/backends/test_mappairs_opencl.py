"""
Tests for the MapPairs OpenCL Generator.

Verifies end-to-end artifact generation for single instantiations: naming,
output path, signature and the absence of unresolved slots.
"""

from dataclasses import replace

import pytest

from conftest import make_function, make_instance
from skelgen.compiler.backends.opencl import MapPairsOpenCLBackend
from skelgen.compiler.errors import MetadataError, NameCollisionError
from skelgen.compiler.ir import SkeletonInstance, SkeletonShape, UserConstant, UserType
from skelgen.compiler.naming import NameRegistry
from skelgen.enums import ContainerKind, SkeletonKind


def test_generate_artifact(config, program):
  backend = MapPairsOpenCLBackend(config, program)
  artifact = backend.generate(make_instance(make_function()))

  assert artifact.kernel_name == "prog_MapPairsKernel_f_Varity_1_Harity_1"
  assert artifact.wrapper_name == "Wrapper_prog_MapPairsKernel_f_Varity_1_Harity_1"
  assert artifact.output_path == config.output_dir / "prog_MapPairsKernel_f_Varity_1_Harity_1_cl_source.inl"
  assert artifact.kernel_source in artifact.source_text
  assert "${" not in artifact.source_text
  assert [a.name for a in artifact.kernel_signature] == ["a", "b", "output", "n", "w", "Vsize", "Hsize", "base"]


def test_generate_with_containers_and_types(config, program):
  program.types["Point"] = UserType("Point", "typedef struct { float x; } Point;")
  func = make_function(
    containers=(("m", "float", ContainerKind.MATRIX), ("r", "float", ContainerKind.MATRIX_ROW)),
    scalars=(("s", "int"),),
    types=("Point",),
  )
  artifact = MapPairsOpenCLBackend(config, program).generate(make_instance(func))

  text = artifact.source_text
  assert text.index("} Point;") < text.index("} skelgen_mat_proxy_float;") < text.index("__kernel")
  assert "${" not in text


def test_multi_arity_shape(config, program):
  func = make_function(elementwise=(("a", "float"), ("b", "float"), ("c", "float")), varity=2)
  artifact = MapPairsOpenCLBackend(config, program).generate(make_instance(func, varity=2, harity=1))

  assert artifact.kernel_name.endswith("_Varity_2_Harity_1")
  assert "f(a[i / Hsize], b[i / Hsize], c[i % Hsize])" in artifact.kernel_source


def test_arity_mismatch(config, program):
  with pytest.raises(MetadataError):
    MapPairsOpenCLBackend(config, program).generate(make_instance(make_function(), varity=2, harity=2))


def test_wrong_skeleton(config, program):
  instance = SkeletonInstance(SkeletonKind.MAP, make_function(), SkeletonShape(1, 1))
  with pytest.raises(MetadataError, match="cannot generate map"):
    MapPairsOpenCLBackend(config, program).generate(instance)


def test_shared_registry_detects_collision(config, program):
  """Two functions sharing a unique name would produce the same kernel name."""
  names = NameRegistry()
  first = make_function(name="f")
  clash = replace(make_function(name="f", body="\treturn a - b;"), name="g")

  MapPairsOpenCLBackend(config, program, names).generate(make_instance(first))
  with pytest.raises(NameCollisionError):
    MapPairsOpenCLBackend(config, program, names).generate(make_instance(clash))


def test_regeneration_is_deterministic(config, program):
  a = MapPairsOpenCLBackend(config, program).generate(make_instance(make_function()))
  b = MapPairsOpenCLBackend(config, program).generate(make_instance(make_function()))
  assert a.source_text == b.source_text


def test_slot_like_text_in_user_code_is_kept(config, program):
  """Marker-shaped text inside a body, type or constant is user code, not a template slot."""
  program.types["Tag"] = UserType("Tag", "typedef int Tag; // ${TAG}")
  program.constants.append(UserConstant("FMT", '"${X}"', "char *"))
  func = make_function(body='\tprintf("${X}\\n");\n\treturn a + b;', types=("Tag",))

  artifact = MapPairsOpenCLBackend(config, program).generate(make_instance(func))

  assert 'printf("${X}\\n");' in artifact.kernel_source
  assert "typedef int Tag; // ${TAG}" in artifact.source_text
  assert '#define FMT ("${X}") // char *' in artifact.source_text
