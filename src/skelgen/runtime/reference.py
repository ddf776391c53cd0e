"""
Host Reference Evaluation of MapPairs.

Evaluates a MapPairs instantiation with a Python callable, visiting the index
space exactly as the generated kernel does (grid-stride over ``W`` workers)
and passing arguments in the same order: index, vertical elements,
horizontal elements, then extra (container/scalar) arguments.
"""

from typing import Any, Callable, List, Sequence

from skelgen.enums import IndexingMode
from skelgen.runtime.indexing import grid_stride_indices, linear_index, pair_of, row_col_index


def _common_length(containers: Sequence[Sequence[Any]], what: str) -> int:
  if not containers:
    return 1
  size = len(containers[0])
  for c in containers[1:]:
    if len(c) != size:
      raise ValueError(f"{what} containers differ in size ({size} vs {len(c)})")
  return size


def map_pairs_reference(
  func: Callable[..., Any],
  vertical: Sequence[Sequence[Any]],
  horizontal: Sequence[Sequence[Any]],
  extra_args: Sequence[Any] = (),
  workers: int = 1,
  indexing: IndexingMode = IndexingMode.NONE,
  base: int = 0,
) -> List[Any]:
  """
  Computes the MapPairs output on the host.

  Args:
      func: The user function.
      vertical: Vertical containers (all of size ``Vsize``).
      horizontal: Horizontal containers (all of size ``Hsize``).
      extra_args: Container and scalar arguments passed through unchanged.
      workers: Number of simulated work items.
      indexing: Index argument passed first, if any. The row width is ``Hsize``.
      base: Offset added to the index.

  Returns:
      List[Any]: ``Vsize * Hsize`` results in row-major pair order.
  """
  vsize = _common_length(vertical, "Vertical")
  hsize = _common_length(horizontal, "Horizontal")
  n = vsize * hsize
  output: List[Any] = [None] * n

  for worker in range(workers):
    for i in grid_stride_indices(worker, workers, n):
      args: List[Any] = []
      if indexing == IndexingMode.LINEAR:
        args.append(linear_index(base, i))
      elif indexing == IndexingMode.ROW_COL:
        args.append(row_col_index(base, i, hsize))
      v_idx, h_idx = pair_of(i, hsize)
      args.extend(v[v_idx] for v in vertical)
      args.extend(h[h_idx] for h in horizontal)
      args.extend(extra_args)
      output[i] = func(*args)

  return output
