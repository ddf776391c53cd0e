"""
skelgen: Source-to-source generator for algorithmic-skeleton kernels.

Takes the skeleton instantiations discovered by a front-end (user functions,
their classified parameters, user types and constants) and emits, per
instantiation and backend, a device kernel together with the host wrapper
class that builds and launches it.

Usage:
    >>> from skelgen import generate_from_manifest
    >>> result = generate_from_manifest("prog.json", output_dir="out", opencl=True)
    >>> print(result.success)
"""

from pathlib import Path
from typing import Union

__version__ = "0.0.1"

from skelgen.compiler.frontends.manifest import load_manifest
from skelgen.config import RuntimeConfig
from skelgen.core.engine import GenerationEngine, GenerationResult
from skelgen.enums import BackendKind, ContainerKind, IndexingMode, SkeletonKind

__all__ = [
  "BackendKind",
  "ContainerKind",
  "GenerationEngine",
  "GenerationResult",
  "IndexingMode",
  "RuntimeConfig",
  "SkeletonKind",
  "generate_from_manifest",
  "__version__",
]


def generate_from_manifest(
  manifest: Union[str, Path],
  output_dir: Union[str, Path] = ".",
  output_name: str = "",
  opencl: bool = True,
) -> GenerationResult:
  """
  Generates every artifact described by a manifest file.

  Args:
      manifest: Path to the front-end JSON manifest.
      output_dir: Directory receiving the artifacts.
      output_name: Base name used in kernel names. Defaults to the manifest stem.
      opencl: Enable the OpenCL backend.

  Returns:
      GenerationResult: Written artifacts and per-artifact failures.

  Raises:
      MetadataError: If the manifest is unreadable or inconsistent.
  """
  path = Path(manifest)
  config = RuntimeConfig(output_dir=Path(output_dir), output_name=output_name or path.stem, opencl=opencl)
  program = load_manifest(path, config.allowed_functions)
  return GenerationEngine(config, program).run()
