"""
Skeleton Metadata Model.

Plain value types describing one user function, its parameters and the
parallel shape of a skeleton instantiation. The front-end produces them once
per compilation run; the backend generators only ever read them.

It acts as the contract between the Frontend (extraction) and the Backend
(kernel synthesis).
"""

import heapq
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from skelgen.compiler.errors import MetadataError
from skelgen.enums import ContainerKind, IndexingMode, ParamSide, SkeletonKind

# Identifiers declared by every generated kernel body. User parameters may not shadow them.
RESERVED_KERNEL_IDENTIFIERS = frozenset({"i", "gridSize", "output", "n", "w", "Vsize", "Hsize", "base", "index"})


@dataclass(frozen=True)
class ElementwiseParam:
  """
  A container parameter read one element per work item.
  """

  name: str
  resolved_type: str
  side: ParamSide


@dataclass(frozen=True)
class ContainerParam:
  """
  A container parameter accessed randomly through a proxy.
  """

  name: str
  resolved_type: str
  kind: ContainerKind


@dataclass(frozen=True)
class ScalarParam:
  """A uniform value passed by value to every work item."""

  name: str
  resolved_type: str


@dataclass(frozen=True)
class UserType:
  """
  A user-defined type referenced from a user function.
  """

  name: str
  """Type name as written in user code (e.g. 'Particle')."""

  definition: str
  """Backend-neutral definition text (e.g. a C struct typedef)."""

  dependencies: Tuple[str, ...] = ()
  """Names of other user types used by this definition."""


@dataclass(frozen=True)
class UserConstant:
  """A user-declared constant, emitted as a preprocessor definition."""

  name: str
  definition: str
  type_name: str


@dataclass(frozen=True)
class UserFunction:
  """
  Signature and body of one elementwise user function.

  Parameter lists keep the user's declaration order within each category; the
  categories themselves always appear as index, elementwise, container, scalar.
  """

  name: str
  unique_name: str
  return_type: str
  body: str = ""
  indexing_mode: IndexingMode = IndexingMode.NONE
  requires_double_precision: bool = False
  elwise_params: Tuple[ElementwiseParam, ...] = ()
  container_params: Tuple[ContainerParam, ...] = ()
  scalar_params: Tuple[ScalarParam, ...] = ()
  referenced_types: Tuple[str, ...] = ()
  called_functions: Tuple[str, ...] = ()
  index_param_name: str = "index"

  @property
  def is_indexed(self) -> bool:
    """True if the function takes an index argument first."""
    return self.indexing_mode != IndexingMode.NONE

  @property
  def param_names(self) -> List[str]:
    """Declared parameter names, index excluded."""
    names = [p.name for p in self.elwise_params]
    names.extend(p.name for p in self.container_params)
    names.extend(p.name for p in self.scalar_params)
    return names


@dataclass(frozen=True)
class SkeletonShape:
  """
  Counts of vertical and horizontal containers paired by a MapPairs instantiation.
  """

  varity: int
  harity: int

  @property
  def arity(self) -> int:
    return self.varity + self.harity


@dataclass(frozen=True)
class SkeletonInstance:
  """One discovered skeleton instantiation."""

  skeleton: SkeletonKind
  function: UserFunction
  shape: SkeletonShape

  def describe(self) -> str:
    """Human readable identity used in diagnostics."""
    return (
      f"{self.skeleton.tag.replace('Kernel', '')}<{self.function.name}> "
      f"(Varity={self.shape.varity}, Harity={self.shape.harity})"
    )


@dataclass(frozen=True, order=True)
class ProxyTypeKey:
  """
  Identity of one in-kernel proxy type. Ordered kind-then-type.
  """

  kind_order: int
  resolved_type: str
  kind: ContainerKind = field(compare=False)

  @classmethod
  def of(cls, param: ContainerParam) -> "ProxyTypeKey":
    return cls(kind_order=param.kind.order, resolved_type=param.resolved_type, kind=param.kind)


@dataclass(frozen=True)
class KernelArg:
  """
  One slot of a kernel's argument list as seen by the host.
  """

  name: str
  is_buffer: bool


@dataclass
class GeneratedArtifact:
  """
  One generated kernel-source fragment plus its host dispatch wrapper.
  """

  kernel_name: str
  wrapper_name: str
  source_text: str
  output_path: Path
  kernel_source: str = ""
  kernel_signature: List[KernelArg] = field(default_factory=list)

  def write(self) -> Path:
    """
    Writes the artifact atomically.

    The text goes to a sibling temporary file first and is moved into place,
    so a failure never leaves a truncated fragment behind.

    Returns:
        Path: The final output path.
    """
    self.output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = self.output_path.with_name(self.output_path.name + ".tmp")
    tmp_path.write_text(self.source_text, encoding="utf-8")
    tmp_path.replace(self.output_path)
    return self.output_path


@dataclass
class ProgramMetadata:
  """
  Everything the front-end discovered in one compilation run.

  Built once and passed by reference through the pipeline; replaces any
  process-wide registry.
  """

  functions: Dict[str, UserFunction] = field(default_factory=dict)
  types: Dict[str, UserType] = field(default_factory=dict)
  constants: List[UserConstant] = field(default_factory=list)
  instances: List[SkeletonInstance] = field(default_factory=list)

  def get_type(self, name: str) -> UserType:
    try:
      return self.types[name]
    except KeyError:
      raise MetadataError(f"Unknown user type '{name}'") from None

  def referenced_types(self, func: UserFunction) -> List[UserType]:
    """
    Resolves the user types a function needs, dependencies included.

    Args:
        func: The user function.

    Returns:
        List[UserType]: Types in dependency order, discovery order as tiebreak.

    Raises:
        MetadataError: If a referenced type is unknown.
    """
    needed: Set[str] = set()
    pending = list(func.referenced_types)
    while pending:
      name = pending.pop()
      if name in needed:
        continue
      needed.add(name)
      pending.extend(self.get_type(name).dependencies)

    ordered = [t for t in self.types.values() if t.name in needed]
    return order_user_types(ordered)


def assign_sides(params: Sequence[Tuple[str, str]], varity: int) -> Tuple[ElementwiseParam, ...]:
  """
  Builds elementwise parameters, the first ``varity`` marked vertical.

  Args:
      params: ``(name, resolved_type)`` pairs in declaration order.
      varity: Number of vertical containers.

  Returns:
      Tuple[ElementwiseParam, ...]: Parameters with their side.
  """
  return tuple(
    ElementwiseParam(name, type_name, ParamSide.VERTICAL if pos < varity else ParamSide.HORIZONTAL)
    for pos, (name, type_name) in enumerate(params)
  )


def order_user_types(types: Iterable[UserType]) -> List[UserType]:
  """
  Sorts user types so every type follows the types it depends on.

  Independent types keep their discovery order. Cycles cannot be satisfied by
  any emission order and are reported.

  Args:
      types: User types in discovery order.

  Returns:
      List[UserType]: Types in emission order.

  Raises:
      MetadataError: If the dependencies form a cycle.
  """
  types = list(types)
  by_name = {t.name: t for t in types}
  position = {t.name: pos for pos, t in enumerate(types)}
  dependents = defaultdict(list)
  in_degree = {t.name: 0 for t in types}

  for t in types:
    for dep in t.dependencies:
      if dep in by_name:
        dependents[dep].append(t.name)
        in_degree[t.name] += 1

  # Min-heap on discovery position keeps independent types in their original order
  ready = [position[t.name] for t in types if in_degree[t.name] == 0]
  heapq.heapify(ready)
  ordered: List[UserType] = []

  while ready:
    current = types[heapq.heappop(ready)]
    ordered.append(current)
    for succ in dependents[current.name]:
      in_degree[succ] -= 1
      if in_degree[succ] == 0:
        heapq.heappush(ready, position[succ])

  if len(ordered) < len(types):
    stuck = sorted(name for name, degree in in_degree.items() if degree > 0)
    raise MetadataError(f"Cyclic dependency between user types: {', '.join(stuck)}")

  return ordered


def validate_user_function(func: UserFunction, shape: Optional[SkeletonShape] = None) -> None:
  """
  Checks the invariants the generators rely on.

  Args:
      func: The user function.
      shape: The instantiation shape, if the function is bound to one.

  Raises:
      MetadataError: On duplicate or reserved parameter names, or an
          elementwise parameter count that does not match the shape.
  """
  if not func.unique_name.isidentifier():
    raise MetadataError(f"User function '{func.name}' has invalid unique name '{func.unique_name}'")

  seen: Set[str] = set()
  for name in func.param_names:
    if name in seen:
      raise MetadataError(f"User function '{func.name}' declares parameter '{name}' twice")
    if name in RESERVED_KERNEL_IDENTIFIERS:
      raise MetadataError(f"User function '{func.name}': parameter name '{name}' is reserved in generated kernels")
    seen.add(name)

  if shape is None:
    return

  if shape.varity < 0 or shape.harity < 0:
    raise MetadataError(f"Invalid shape for '{func.name}': {shape}")

  if len(func.elwise_params) != shape.arity:
    raise MetadataError(
      f"User function '{func.name}' has {len(func.elwise_params)} elementwise parameters, "
      f"but the instantiation pairs Varity={shape.varity} with Harity={shape.harity}"
    )

  for pos, param in enumerate(func.elwise_params):
    expected = ParamSide.VERTICAL if pos < shape.varity else ParamSide.HORIZONTAL
    if param.side != expected:
      raise MetadataError(f"User function '{func.name}': parameter '{param.name}' should be {expected.value}")
