"""
Compiler Package.

This package defines the skeleton metadata model and the backend generator
interface. It separates what the front-end discovered about a program from
the per-backend code generation logic.
"""

from skelgen.compiler.backend import CompilerBackend
from skelgen.compiler.ir import (
  ContainerParam,
  ElementwiseParam,
  GeneratedArtifact,
  ProgramMetadata,
  ScalarParam,
  SkeletonInstance,
  SkeletonShape,
  UserFunction,
)

__all__ = [
  "CompilerBackend",
  "ContainerParam",
  "ElementwiseParam",
  "GeneratedArtifact",
  "ProgramMetadata",
  "ScalarParam",
  "SkeletonInstance",
  "SkeletonShape",
  "UserFunction",
]
