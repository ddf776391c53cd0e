"""
OpenCL Container Proxy Generator.

Every random-access container parameter reaches the kernel as a flat device
buffer plus a few shape scalars. Inside the kernel it is wrapped in a small
*proxy* struct so the user function can address it naturally. This module
owns the per-kind knowledge:

1.  **Proxy type definitions**: one ``typedef struct`` plus accessor functions
    per distinct ``(kind, element type)`` pair, emitted in kind-then-type order.
2.  **Parameter bindings**: for a single container parameter, the kernel-side
    parameters, the host-side parameter, the host expressions that marshal it,
    and the proxy initializer statement.

All proxies are initialized once per work item before the grid-stride loop,
except ``MatrixRow``: its base pointer is offset by the current index ``i``
and is therefore re-initialized on every iteration.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from skelgen.compiler.errors import MetadataError, UnknownContainerKindError
from skelgen.compiler.ir import ContainerParam, KernelArg, ProxyTypeKey
from skelgen.compiler.templates import SlotTemplate
from skelgen.enums import ContainerKind

HOST_NS = "skelgen::backend"
CONTAINER_PREFIX = "skelgen_container_"


@dataclass(frozen=True)
class ProxyField:
  """
  One member of a proxy struct and the kernel parameter that feeds it.

  ``c_type``, ``param``, ``host_arg`` and ``init`` are format strings over
  ``{type}`` (element type), ``{name}`` (parameter name) and ``{container}``
  (host tuple name).
  """

  member: str
  c_type: str
  param: str
  host_arg: str
  is_buffer: bool = False
  init: str = ""


@dataclass(frozen=True)
class ProxyLayout:
  """Fixed field layout and access pattern of one container kind."""

  struct_prefix: str
  host_container: str
  fields: Tuple[ProxyField, ...]
  accessors: SlotTemplate
  extra_host_buffers: Tuple[str, ...] = ()
  per_iteration: bool = False


def _data_field(init: str = "") -> ProxyField:
  return ProxyField(
    member="data",
    c_type="__global {type} *",
    param=CONTAINER_PREFIX + "{name}",
    host_arg="std::get<1>({container})->getDeviceDataPointer()",
    is_buffer=True,
    init=init,
  )


def _size_field(member: str, param_prefix: str, host_call: str) -> ProxyField:
  return ProxyField(
    member=member,
    c_type="size_t ",
    param=param_prefix + "{name}",
    host_arg="std::get<0>({container})->" + host_call + "()",
  )


_VECTOR_ACCESSORS = SlotTemplate(
  """${TYPE} ${PROXY}_get(${PROXY} v, size_t index)
{
	return v.data[index];
}
""",
  name="vector proxy accessors",
)

_MATRIX_ACCESSORS = SlotTemplate(
  """${TYPE} ${PROXY}_get(${PROXY} m, size_t row, size_t col)
{
	return m.data[row * m.cols + col];
}
""",
  name="matrix proxy accessors",
)

_SPARSE_ACCESSORS = SlotTemplate(
  """size_t ${PROXY}_row_size(${PROXY} m, size_t row)
{
	return m.row_offsets[row + 1] - m.row_offsets[row];
}

${TYPE} ${PROXY}_get(${PROXY} m, size_t row, size_t k)
{
	return m.data[m.row_offsets[row] + k];
}

size_t ${PROXY}_col_index(${PROXY} m, size_t row, size_t k)
{
	return m.col_indices[m.row_offsets[row] + k];
}
""",
  name="sparse matrix proxy accessors",
)

_MATRIX_ROW_ACCESSORS = SlotTemplate(
  """${TYPE} ${PROXY}_get(${PROXY} r, size_t col)
{
	return r.data[col];
}
""",
  name="matrix row proxy accessors",
)

_TENSOR3_ACCESSORS = SlotTemplate(
  """${TYPE} ${PROXY}_get(${PROXY} t, size_t i, size_t j, size_t k)
{
	return t.data[(i * t.size_j + j) * t.size_k + k];
}
""",
  name="tensor3 proxy accessors",
)

_TENSOR4_ACCESSORS = SlotTemplate(
  """${TYPE} ${PROXY}_get(${PROXY} t, size_t i, size_t j, size_t k, size_t l)
{
	return t.data[((i * t.size_j + j) * t.size_k + k) * t.size_l + l];
}
""",
  name="tensor4 proxy accessors",
)

PROXY_LAYOUTS: Dict[ContainerKind, ProxyLayout] = {
  ContainerKind.VECTOR: ProxyLayout(
    struct_prefix="skelgen_vec_proxy",
    host_container="skelgen::Vector",
    fields=(_data_field(), _size_field("size", "skelgen_size_", "size")),
    accessors=_VECTOR_ACCESSORS,
  ),
  ContainerKind.MATRIX: ProxyLayout(
    struct_prefix="skelgen_mat_proxy",
    host_container="skelgen::Matrix",
    fields=(
      _data_field(),
      _size_field("rows", "skelgen_rows_", "total_rows"),
      _size_field("cols", "skelgen_cols_", "total_cols"),
    ),
    accessors=_MATRIX_ACCESSORS,
  ),
  ContainerKind.SPARSE_MATRIX: ProxyLayout(
    struct_prefix="skelgen_sparse_mat_proxy",
    host_container="skelgen::SparseMatrix",
    fields=(
      _data_field(),
      ProxyField(
        member="row_offsets",
        c_type="__global size_t *",
        param="{name}_row_pointers",
        host_arg="std::get<2>({container})->getDeviceDataPointer()",
        is_buffer=True,
      ),
      ProxyField(
        member="col_indices",
        c_type="__global size_t *",
        param="{name}_col_indices",
        host_arg="std::get<3>({container})->getDeviceDataPointer()",
        is_buffer=True,
      ),
      _size_field("count", "skelgen_size_", "total_nnz"),
    ),
    accessors=_SPARSE_ACCESSORS,
    extra_host_buffers=("size_t", "size_t"),
  ),
  ContainerKind.MATRIX_ROW: ProxyLayout(
    struct_prefix="skelgen_mat_row_proxy",
    host_container="skelgen::Matrix",
    fields=(
      _data_field(init="(" + CONTAINER_PREFIX + "{name} + i * skelgen_cols_{name})"),
      _size_field("cols", "skelgen_cols_", "total_cols"),
    ),
    accessors=_MATRIX_ROW_ACCESSORS,
    per_iteration=True,
  ),
  ContainerKind.TENSOR3: ProxyLayout(
    struct_prefix="skelgen_ten3_proxy",
    host_container="skelgen::Tensor3",
    fields=(
      _data_field(),
      _size_field("size_i", "skelgen_size_i_", "size_i"),
      _size_field("size_j", "skelgen_size_j_", "size_j"),
      _size_field("size_k", "skelgen_size_k_", "size_k"),
    ),
    accessors=_TENSOR3_ACCESSORS,
  ),
  ContainerKind.TENSOR4: ProxyLayout(
    struct_prefix="skelgen_ten4_proxy",
    host_container="skelgen::Tensor4",
    fields=(
      _data_field(),
      _size_field("size_i", "skelgen_size_i_", "size_i"),
      _size_field("size_j", "skelgen_size_j_", "size_j"),
      _size_field("size_k", "skelgen_size_k_", "size_k"),
      _size_field("size_l", "skelgen_size_l_", "size_l"),
    ),
    accessors=_TENSOR4_ACCESSORS,
  ),
}

_NON_IDENT = re.compile(r"[^A-Za-z0-9_]+")


def layout_for(kind: ContainerKind) -> ProxyLayout:
  """
  Looks up the layout of a container kind.

  Raises:
      UnknownContainerKindError: If the kind has no proxy layout.
  """
  try:
    return PROXY_LAYOUTS[kind]
  except KeyError:
    raise UnknownContainerKindError(f"No proxy layout for container kind '{kind}'") from None


def proxy_type_name(kind: ContainerKind, resolved_type: str) -> str:
  """
  Name of the proxy struct for a container kind and element type.

  Example: ``(MATRIX, "unsigned int")`` gives ``skelgen_mat_proxy_unsigned_int``.
  """
  suffix = _NON_IDENT.sub("_", resolved_type.strip()).strip("_")
  return f"{layout_for(kind).struct_prefix}_{suffix}"


def collect_proxy_keys(params: Iterable[ContainerParam]) -> List[ProxyTypeKey]:
  """
  Distinct proxy keys of the given parameters, sorted kind-then-type.

  Args:
      params: Container parameters, duplicates allowed.

  Returns:
      List[ProxyTypeKey]: One key per distinct ``(kind, resolved_type)``.
  """
  keys = set()
  for param in params:
    layout_for(param.kind)
    keys.add(ProxyTypeKey.of(param))
  return sorted(keys)


@dataclass
class ProxyBinding:
  """
  How one container parameter crosses the host/kernel boundary.
  """

  param: ContainerParam
  kernel_params: List[str] = field(default_factory=list)
  host_param: str = ""
  kernel_args: List[str] = field(default_factory=list)
  signature: List[KernelArg] = field(default_factory=list)
  initializer: str = ""
  per_iteration: bool = False


class ContainerProxyGenerator:
  """
  Emits proxy type definitions and per-parameter bindings for OpenCL kernels.
  """

  def definitions(self, params: Iterable[ContainerParam]) -> List[str]:
    """
    Proxy definitions for every distinct ``(kind, type)`` among ``params``.

    Args:
        params: The container parameters of a user function.

    Returns:
        List[str]: One definition block per proxy key, in emission order.

    Raises:
        MetadataError: If two element types mangle to the same proxy name
            (e.g. ``unsigned int`` and ``unsigned_int``).
    """
    keys = collect_proxy_keys(params)
    owners: Dict[str, ProxyTypeKey] = {}
    for key in keys:
      proxy = proxy_type_name(key.kind, key.resolved_type)
      other = owners.setdefault(proxy, key)
      if other is not key:
        raise MetadataError(
          f"Element types '{other.resolved_type}' and '{key.resolved_type}' both map to proxy type '{proxy}'"
        )
    return [self.definition(key) for key in keys]

  def definition(self, key: ProxyTypeKey) -> str:
    """
    The typedef and accessor functions of one proxy type.
    """
    layout = layout_for(key.kind)
    proxy = proxy_type_name(key.kind, key.resolved_type)
    members = "".join(f"\t{f.c_type.format(type=key.resolved_type)}{f.member};\n" for f in layout.fields)
    struct = f"typedef struct {{\n{members}}} {proxy};\n\n"
    return struct + layout.accessors.render({"PROXY": proxy, "TYPE": key.resolved_type}) + "\n"

  def bind(self, param: ContainerParam) -> ProxyBinding:
    """
    Builds the kernel/host plumbing for one container parameter.

    Args:
        param: The container parameter.

    Returns:
        ProxyBinding: Parameter lists, marshaling expressions and initializer.
    """
    layout = layout_for(param.kind)
    container = CONTAINER_PREFIX + param.name
    fmt = {"type": param.resolved_type, "name": param.name, "container": container}

    binding = ProxyBinding(param=param, per_iteration=layout.per_iteration)
    inits = []
    for f in layout.fields:
      param_name = f.param.format(**fmt)
      binding.kernel_params.append(f"{f.c_type.format(**fmt)}{param_name}")
      binding.kernel_args.append(f.host_arg.format(**fmt))
      binding.signature.append(KernelArg(param_name, is_buffer=f.is_buffer))
      inits.append(f".{f.member} = {(f.init or f.param).format(**fmt)}")

    proxy = proxy_type_name(param.kind, param.resolved_type)
    binding.initializer = f"{proxy} {param.name} = {{ {', '.join(inits)} }};"

    device_ptrs = [f"{HOST_NS}::DeviceMemPointer_CL<{param.resolved_type}> *"]
    device_ptrs.extend(f"{HOST_NS}::DeviceMemPointer_CL<{t}> *" for t in layout.extra_host_buffers)
    tuple_args = ", ".join([f"{layout.host_container}<{param.resolved_type}> *", *device_ptrs])
    binding.host_param = f"std::tuple<{tuple_args}> {container}"
    return binding
