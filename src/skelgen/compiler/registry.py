"""
Compiler Registry.

Maps ``(skeleton kind, backend)`` pairs to the generator that handles them.
Pairs without an entry are produced by external generators and are skipped by
the engine.
"""

from typing import Dict, List, Optional, Tuple, Type

from skelgen.compiler.backend import CompilerBackend
from skelgen.compiler.backends.opencl import MapPairsOpenCLBackend
from skelgen.enums import BackendKind, SkeletonKind

_GENERATORS: Dict[Tuple[SkeletonKind, BackendKind], Type[CompilerBackend]] = {
  (SkeletonKind.MAP_PAIRS, BackendKind.OPENCL): MapPairsOpenCLBackend,
}


def get_generator_class(skeleton: SkeletonKind, backend: BackendKind) -> Optional[Type[CompilerBackend]]:
  """Returns the generator class for the pair, or None if unsupported."""
  return _GENERATORS.get((skeleton, backend))


def register_generator(generator: Type[CompilerBackend]) -> None:
  """
  Registers a generator under its declared skeleton and backend.

  Args:
      generator: A ``CompilerBackend`` subclass with ``skeleton`` and ``backend`` set.
  """
  _GENERATORS[(generator.skeleton, generator.backend)] = generator


def supported_pairs() -> List[Tuple[SkeletonKind, BackendKind]]:
  """All registered ``(skeleton, backend)`` pairs."""
  return list(_GENERATORS)
