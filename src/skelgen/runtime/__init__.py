"""
Runtime Package.

Host-side helpers for driving generated kernels from Python: iteration and
index semantics, a thread-safe per-device kernel cache, and a reference
evaluator.
"""

from skelgen.runtime.dispatch import KernelBuilder, KernelCache
from skelgen.runtime.indexing import Index1D, Index2D, grid_stride_indices, linear_index, row_col_index
from skelgen.runtime.reference import map_pairs_reference

__all__ = [
  "Index1D",
  "Index2D",
  "KernelBuilder",
  "KernelCache",
  "grid_stride_indices",
  "linear_index",
  "map_pairs_reference",
  "row_col_index",
]
