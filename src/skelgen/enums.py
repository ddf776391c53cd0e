"""
Enumerations for skelgen.

This module defines the standard enumerations shared by the metadata model,
the code generators and the command-line driver.
"""

from enum import Enum


class IndexingMode(str, Enum):
  """
  How a user function receives its position in the index space.
  """

  NONE = "none"
  LINEAR = "linear"  # index1_t { i }
  ROW_COL = "row_col"  # index2_t { row, col }


class ParamSide(str, Enum):
  """
  Which set of the MapPairs cross product an elementwise parameter belongs to.
  """

  VERTICAL = "vertical"
  HORIZONTAL = "horizontal"


class ContainerKind(str, Enum):
  """
  Random-access container kinds that get an in-kernel proxy type.

  Declaration order is the proxy emission order.
  """

  VECTOR = "vector"
  MATRIX = "matrix"
  SPARSE_MATRIX = "sparse_matrix"
  MATRIX_ROW = "matrix_row"
  TENSOR3 = "tensor3"
  TENSOR4 = "tensor4"

  @property
  def order(self) -> int:
    """Position of the kind in the emission order."""
    return list(ContainerKind).index(self)


class SkeletonKind(str, Enum):
  """
  Backend-agnostic parallel patterns recognised by the front-end.
  """

  MAP = "map"
  REDUCE1D = "reduce1d"
  REDUCE2D = "reduce2d"
  MAP_REDUCE = "map_reduce"
  SCAN = "scan"
  MAP_OVERLAP1D = "map_overlap1d"
  MAP_OVERLAP2D = "map_overlap2d"
  MAP_OVERLAP3D = "map_overlap3d"
  MAP_OVERLAP4D = "map_overlap4d"
  MAP_PAIRS = "map_pairs"
  MAP_PAIRS_REDUCE = "map_pairs_reduce"
  CALL = "call"

  @property
  def tag(self) -> str:
    """
    CamelCase tag used inside generated kernel names (e.g. ``MapPairsKernel``).
    """
    return _SKELETON_TAGS[self]


_SKELETON_TAGS = {
  SkeletonKind.MAP: "MapKernel",
  SkeletonKind.REDUCE1D: "Reduce1DKernel",
  SkeletonKind.REDUCE2D: "Reduce2DKernel",
  SkeletonKind.MAP_REDUCE: "MapReduceKernel",
  SkeletonKind.SCAN: "ScanKernel",
  SkeletonKind.MAP_OVERLAP1D: "MapOverlap1DKernel",
  SkeletonKind.MAP_OVERLAP2D: "MapOverlap2DKernel",
  SkeletonKind.MAP_OVERLAP3D: "MapOverlap3DKernel",
  SkeletonKind.MAP_OVERLAP4D: "MapOverlap4DKernel",
  SkeletonKind.MAP_PAIRS: "MapPairsKernel",
  SkeletonKind.MAP_PAIRS_REDUCE: "MapPairsReduceKernel",
  SkeletonKind.CALL: "CallKernel",
}


class BackendKind(str, Enum):
  """
  Parallel execution backends the driver can emit code for.
  """

  OPENMP = "openmp"
  CUDA = "cuda"
  OPENCL = "opencl"
  STARPU_MPI = "starpu_mpi"
  MPI = "mpi"
