"""
Kernel Iteration and Index Semantics.

Host-side statement of how generated kernels walk the index space and what
index value indexed user functions receive. The generated OpenCL code follows
the same rules:

* each work item starts at its global id and advances by the total number of
  work items while the index is below ``n`` (grid-stride loop);
* a linear index is ``base + i``;
* a row/column index is ``((base + i) // w, (base + i) % w)``.
"""

from typing import Iterator, NamedTuple


class Index1D(NamedTuple):
  i: int


class Index2D(NamedTuple):
  row: int
  col: int


def grid_stride_indices(worker: int, workers: int, n: int) -> Iterator[int]:
  """
  Indices visited by one work item of a grid-stride loop.

  Args:
      worker: Global id of the work item, ``0 <= worker < workers``.
      workers: Total number of work items (the stride).
      n: Number of elements.

  Yields:
      int: ``worker, worker + workers, ...`` while below ``n``.

  Raises:
      ValueError: If ``workers`` is not positive or ``worker`` is out of range.
  """
  if workers < 1:
    raise ValueError(f"workers must be positive, got {workers}")
  if not 0 <= worker < workers:
    raise ValueError(f"worker {worker} outside [0, {workers})")
  i = worker
  while i < n:
    yield i
    i += workers


def linear_index(base: int, i: int) -> Index1D:
  """Index handed to a linearly indexed user function."""
  return Index1D(base + i)


def row_col_index(base: int, i: int, width: int) -> Index2D:
  """
  Index handed to a row/column indexed user function.

  Raises:
      ValueError: If ``width`` is not positive.
  """
  if width < 1:
    raise ValueError(f"row width must be positive, got {width}")
  flat = base + i
  return Index2D(flat // width, flat % width)


def pair_of(i: int, hsize: int) -> Index2D:
  """
  The (vertical, horizontal) element pair processed at flat index ``i``.

  Vertical containers are read at ``i // hsize``, horizontal ones at ``i % hsize``.
  """
  if hsize < 1:
    raise ValueError(f"Hsize must be positive, got {hsize}")
  return Index2D(i // hsize, i % hsize)
