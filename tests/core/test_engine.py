"""
Tests for the Generation Engine.

Verifies:
1. Artifacts are written for every (instance, enabled backend) pair with a generator.
2. Pairs without a generator are skipped, not failed.
3. A failing artifact is reported with context and does not stop the others.
"""

from conftest import make_function, make_instance
from skelgen.compiler.ir import ProgramMetadata
from skelgen.config import RuntimeConfig
from skelgen.core.engine import GenerationEngine
from skelgen.enums import BackendKind


def _program(*instances):
  program = ProgramMetadata()
  for inst in instances:
    program.functions[inst.function.unique_name] = inst.function
    program.instances.append(inst)
  return program


def test_run_writes_artifact(config):
  result = GenerationEngine(config, _program(make_instance(make_function()))).run()

  assert result.success
  (record,) = result.artifacts
  assert record.backend == BackendKind.OPENCL
  assert record.path.exists()
  assert "class Wrapper_prog_MapPairsKernel_f_Varity_1_Harity_1" in record.path.read_text()


def test_two_instances_two_artifacts(config):
  g = make_function(name="g")
  result = GenerationEngine(config, _program(make_instance(make_function()), make_instance(g))).run()
  assert len(result.artifacts) == 2
  assert len({r.path for r in result.artifacts}) == 2


def test_no_backend_enabled(tmp_path):
  config = RuntimeConfig(output_dir=tmp_path, output_name="prog")
  result = GenerationEngine(config, _program(make_instance(make_function()))).run()
  assert result.success
  assert result.artifacts == []
  assert list(tmp_path.iterdir()) == []


def test_unsupported_backend_is_skipped(tmp_path):
  config = RuntimeConfig(output_dir=tmp_path, output_name="prog", cuda=True, opencl=True)
  result = GenerationEngine(config, _program(make_instance(make_function()))).run()

  assert result.success
  assert len(result.artifacts) == 1
  assert result.skipped == ["MapPairs<f> (Varity=1, Harity=1) [cuda]"]


def test_failure_is_isolated(config):
  """A bad instantiation is reported; the good one is still written."""
  bad = make_instance(make_function(name="bad"), varity=2, harity=2)
  good = make_instance(make_function(name="good"))
  result = GenerationEngine(config, _program(bad, good)).run()

  assert not result.success
  (message,) = result.errors
  assert message.startswith("MapPairs<bad> (Varity=2, Harity=2) [opencl], function 'bad':")
  assert [r.kernel_name for r in result.artifacts] == ["prog_MapPairsKernel_good_Varity_1_Harity_1"]


def test_generate_without_writing(config):
  engine = GenerationEngine(config, _program())
  artifact = engine.generate(make_instance(make_function()), BackendKind.OPENCL)
  assert artifact is not None
  assert not artifact.output_path.exists()
  assert engine.generate(make_instance(make_function()), BackendKind.MPI) is None
