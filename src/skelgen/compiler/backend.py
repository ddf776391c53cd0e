"""
Compiler Backend Protocol.

Defines the abstract interface for generators that turn one skeleton
instantiation into a backend-specific artifact (kernel source plus host
dispatch wrapper).
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Optional

from skelgen.compiler.ir import GeneratedArtifact, ProgramMetadata, SkeletonInstance
from skelgen.compiler.naming import NameRegistry
from skelgen.enums import BackendKind, SkeletonKind

if TYPE_CHECKING:
  from skelgen.config import RuntimeConfig


class CompilerBackend(ABC):
  """
  Abstract base class for per-skeleton, per-backend code generators.
  """

  skeleton: ClassVar[SkeletonKind]
  backend: ClassVar[BackendKind]

  def __init__(
    self,
    config: "RuntimeConfig",
    program: ProgramMetadata,
    names: Optional[NameRegistry] = None,
  ) -> None:
    """
    Args:
        config: Output location, base name and device limits.
        program: The run's metadata graph (types and constants).
        names: Run-wide kernel name registry. A private one is used if omitted.
    """
    self.config = config
    self.program = program
    self.names = names if names is not None else NameRegistry()

  @abstractmethod
  def generate(self, instance: SkeletonInstance) -> GeneratedArtifact:
    """
    Generates the artifact for one skeleton instantiation.

    Args:
        instance: The instantiation (skeleton kind, user function, shape).

    Returns:
        GeneratedArtifact: Kernel and wrapper source with its output path.
    """
    pass
