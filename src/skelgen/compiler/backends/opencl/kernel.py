"""
OpenCL Kernel Template Engine (MapPairs).

Turns a user function and its MapPairs shape into one complete OpenCL C
program:

1.  **Preamble**: the ``cl_khr_fp64`` pragma (when double precision is
    required), user constants as ``#define``, user types in dependency order,
    then the container proxy definitions.
2.  **Predefined types**: the index structs handed to indexed user functions.
3.  **User function**: the function body wrapped in its declared signature.
4.  **Kernel**: a grid-stride loop calling the user function once per pair.

Parameter lists for the kernel and the host wrapper are assembled together so
they stay in the same order: elementwise buffers, container buffers and shape
scalars, scalar parameters, then the fixed MapPairs tail
(``output, n, w, Vsize, Hsize, base``).

The call into the user function passes, in declaration order: the index (if
any), each elementwise parameter as ``p[i / Hsize]`` (vertical) or
``p[i % Hsize]`` (horizontal), each container proxy, each scalar.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from skelgen.compiler.backends.opencl.proxies import HOST_NS, ContainerProxyGenerator, proxy_type_name
from skelgen.compiler.errors import MetadataError
from skelgen.compiler.ir import KernelArg, UserConstant, UserFunction, UserType
from skelgen.compiler.templates import SlotTemplate
from skelgen.enums import IndexingMode, ParamSide

FP64_PRAGMA = "#pragma OPENCL EXTENSION cl_khr_fp64: enable"

PREDEFINED_TYPES = """typedef struct {
	size_t i;
} index1_t;

typedef struct {
	size_t row;
	size_t col;
} index2_t;
"""

INDEX_TYPES = {
  IndexingMode.LINEAR: "index1_t",
  IndexingMode.ROW_COL: "index2_t",
}

INDEX_INITIALIZERS = {
  IndexingMode.LINEAR: "index1_t index = { .i = base + i };",
  IndexingMode.ROW_COL: "index2_t index = { .row = (base + i) / w, .col = (base + i) % w };",
}

MAP_PAIRS_KERNEL = SlotTemplate(
  """__kernel void ${KERNEL_NAME}(${KERNEL_PARAMS})
{
	size_t i = get_global_id(0);
	size_t gridSize = get_local_size(0) * get_num_groups(0);
${PROXY_INIT}	while (i < n)
	{
${INDEX_INIT}${PROXY_INIT_INNER}		output[i] = ${FUNCTION_NAME}(${CALL_ARGS});
		i += gridSize;
	}
}
""",
  name="MapPairs OpenCL kernel",
)

USER_FUNCTION = SlotTemplate(
  """${RESULT_TYPE} ${FUNCTION_NAME}(${PARAMS})
{
${BODY}
}
""",
  name="OpenCL user function",
)


@dataclass
class KernelParameters:
  """
  Everything derived from a user function's parameter list.

  ``kernel_params``, ``kernel_args`` and ``signature`` are aligned slot by
  slot. ``host_params`` has one entry per declared parameter; a host container
  tuple covers several kernel slots.
  """

  kernel_params: List[str] = field(default_factory=list)
  host_params: List[str] = field(default_factory=list)
  kernel_args: List[str] = field(default_factory=list)
  call_args: List[str] = field(default_factory=list)
  signature: List[KernelArg] = field(default_factory=list)
  proxy_init: List[str] = field(default_factory=list)
  proxy_init_inner: List[str] = field(default_factory=list)
  index_init: str = ""


def _block(lines: Sequence[str], indent: str) -> str:
  return "".join(f"{indent}{line}\n" for line in lines)


class KernelTemplateEngine:
  """
  Fills the MapPairs kernel template from user function metadata.
  """

  def __init__(self, proxies: ContainerProxyGenerator) -> None:
    self.proxies = proxies

  def parameters(self, func: UserFunction) -> KernelParameters:
    """
    Assembles kernel, host and call argument lists for a user function.

    Args:
        func: The user function.

    Returns:
        KernelParameters: All parameter lists and proxy initializers.
    """
    params = KernelParameters()

    if func.is_indexed:
      params.call_args.append("index")
      params.index_init = INDEX_INITIALIZERS[func.indexing_mode]

    for p in func.elwise_params:
      params.kernel_params.append(f"__global {p.resolved_type} *{p.name}")
      params.host_params.append(f"{HOST_NS}::DeviceMemPointer_CL<{p.resolved_type}> *{p.name}")
      params.kernel_args.append(f"{p.name}->getDeviceDataPointer()")
      params.signature.append(KernelArg(p.name, is_buffer=True))
      if p.side == ParamSide.VERTICAL:
        params.call_args.append(f"{p.name}[i / Hsize]")
      else:
        params.call_args.append(f"{p.name}[i % Hsize]")

    for p in func.container_params:
      binding = self.proxies.bind(p)
      params.kernel_params.extend(binding.kernel_params)
      params.host_params.append(binding.host_param)
      params.kernel_args.extend(binding.kernel_args)
      params.signature.extend(binding.signature)
      if binding.per_iteration:
        params.proxy_init_inner.append(binding.initializer)
      else:
        params.proxy_init.append(binding.initializer)
      params.call_args.append(p.name)

    for p in func.scalar_params:
      params.kernel_params.append(f"{p.resolved_type} {p.name}")
      params.host_params.append(f"{p.resolved_type} {p.name}")
      params.kernel_args.append(p.name)
      params.signature.append(KernelArg(p.name, is_buffer=False))
      params.call_args.append(p.name)

    result = func.return_type
    params.kernel_params.extend(
      [f"__global {result} *output", "size_t n", "size_t w", "size_t Vsize", "size_t Hsize", "size_t base"]
    )
    params.host_params.extend(
      [
        f"{HOST_NS}::DeviceMemPointer_CL<{result}> *output",
        "size_t n",
        "size_t w",
        "size_t Vsize",
        "size_t Hsize",
        "size_t base",
      ]
    )
    params.kernel_args.extend(["output->getDeviceDataPointer()", "n", "w", "Vsize", "Hsize", "base"])
    params.signature.append(KernelArg("output", is_buffer=True))
    params.signature.extend(KernelArg(name, is_buffer=False) for name in ("n", "w", "Vsize", "Hsize", "base"))
    return params

  def user_function_code(self, func: UserFunction) -> str:
    """
    Renders the user function as an OpenCL C function.

    Raises:
        MetadataError: If the function has no result type.
    """
    if not func.return_type:
      raise MetadataError(f"User function '{func.name}' has no resolved return type")

    decls = []
    if func.is_indexed:
      decls.append(f"{INDEX_TYPES[func.indexing_mode]} {func.index_param_name}")
    decls.extend(f"{p.resolved_type} {p.name}" for p in func.elwise_params)
    decls.extend(f"{proxy_type_name(p.kind, p.resolved_type)} {p.name}" for p in func.container_params)
    decls.extend(f"{p.resolved_type} {p.name}" for p in func.scalar_params)

    return USER_FUNCTION.render(
      {
        "RESULT_TYPE": func.return_type,
        "FUNCTION_NAME": func.unique_name,
        "PARAMS": ", ".join(decls),
        "BODY": func.body.strip("\n"),
      }
    )

  def preamble(self, func: UserFunction, types: Sequence[UserType], constants: Sequence[UserConstant]) -> str:
    """
    Everything that precedes the predefined types: pragma, constants, user
    types and proxy definitions, in that order.
    """
    parts = []
    if func.requires_double_precision:
      parts.append(FP64_PRAGMA + "\n")
    for const in constants:
      parts.append(f"#define {const.name} ({const.definition}) // {const.type_name}\n")
    for user_type in types:
      parts.append(user_type.definition.rstrip("\n") + "\n")
    parts.extend(self.proxies.definitions(func.container_params))
    return "".join(parts)

  def kernel_source(
    self,
    kernel_name: str,
    func: UserFunction,
    params: KernelParameters,
    types: Sequence[UserType] = (),
    constants: Sequence[UserConstant] = (),
  ) -> str:
    """
    Assembles the complete OpenCL program for one MapPairs instantiation.

    Args:
        kernel_name: Name of the ``__kernel`` entry point.
        func: The user function.
        params: Output of :meth:`parameters` for ``func``.
        types: User types the function needs, in emission order.
        constants: User constants, in discovery order.

    Returns:
        str: OpenCL C source with every slot resolved.

    Raises:
        TemplateError: If a template slot has no value. User text (body,
            types, constants) is spliced verbatim and never inspected.
    """
    kernel = MAP_PAIRS_KERNEL.render(
      {
        "KERNEL_NAME": kernel_name,
        "KERNEL_PARAMS": ", ".join(params.kernel_params),
        "PROXY_INIT": _block(params.proxy_init, "\t"),
        "INDEX_INIT": _block([params.index_init] if params.index_init else [], "\t\t"),
        "PROXY_INIT_INNER": _block(params.proxy_init_inner, "\t\t"),
        "FUNCTION_NAME": func.unique_name,
        "CALL_ARGS": ", ".join(params.call_args),
      }
    )
    return "\n".join(
      [
        self.preamble(func, types, constants),
        PREDEFINED_TYPES,
        self.user_function_code(func),
        kernel,
      ]
    )
