"""
OpenCL Host Dispatch Wrapper Generator.

Emits the C++ class the skeleton runtime uses to drive one generated kernel:

* ``initialize()`` builds the program for every OpenCL device exactly once.
  The one-shot build is guarded by ``std::call_once``; concurrent first calls
  block until the build finishes. A build failure on any device is fatal.
* ``kernel(deviceID)`` looks up the compiled kernel in a table keyed by device
  ordinal. The table grows to the number of devices found at runtime and is
  protected by a mutex.
* ``map(...)`` binds the marshaled arguments in kernel parameter order and
  enqueues the launch. It does not wait; callers synchronize on the device
  queue.
* ``release()`` drops every compiled kernel and the program it was created
  from. The wrapper is not usable after.
"""

from typing import Optional

from skelgen.compiler.backends.opencl.kernel import KernelParameters
from skelgen.compiler.errors import TemplateError
from skelgen.compiler.templates import SlotTemplate

RAW_STRING_CLOSE = ')###"'

MAP_PAIRS_WRAPPER = SlotTemplate(
  """
class ${WRAPPER_NAME}
{
public:

	static void initialize()
	{
		std::call_once(build_flag(), build);
	}

	static void release()
	{
		std::lock_guard<std::mutex> lock(table_mutex());
		for (auto &entry : kernel_table())
			clReleaseKernel(entry.second);
		kernel_table().clear();
		for (auto &entry : program_table())
			clReleaseProgram(entry.second);
		program_table().clear();
	}

	static cl_kernel kernel(size_t deviceID)
	{
		std::lock_guard<std::mutex> lock(table_mutex());
		auto it = kernel_table().find(deviceID);
		if (it == kernel_table().end())
			SKELGEN_ERROR("No kernel '${KERNEL_NAME}' built for device " << deviceID);
		return it->second;
	}

	static void map
	(
		size_t deviceID, size_t localSize, size_t globalSize,
		${HOST_PARAMS}
	)
	{
		if (localSize == 0 || globalSize % localSize != 0)
			SKELGEN_ERROR("Invalid work size for kernel '${KERNEL_NAME}': global " << globalSize << ", local " << localSize);

		cl_kernel k = kernel(deviceID);
		skelgen::backend::cl_helpers::setKernelArgs(k, ${KERNEL_ARGS});
		cl_int err = clEnqueueNDRangeKernel(skelgen::backend::Environment<int>::getInstance()->m_devices_CL.at(deviceID)->getQueue(), k, 1, NULL, &globalSize, &localSize, 0, NULL, NULL);
		CL_CHECK_ERROR(err, "Error launching MapPairs kernel '${KERNEL_NAME}' on device " << deviceID);
	}

private:

	static void build()
	{
		std::string source = skelgen::backend::cl_helpers::replaceSizeT(R"###(${KERNEL_SOURCE})###");
		auto &devices = skelgen::backend::Environment<int>::getInstance()->m_devices_CL;
${DEVICE_LIMIT_CHECK}
		std::lock_guard<std::mutex> lock(table_mutex());
		size_t counter = 0;
		for (skelgen::backend::Device_CL *device : devices)
		{
			cl_int err;
			cl_program program = skelgen::backend::cl_helpers::buildProgram(device, source);
			program_table()[counter] = program;
			cl_kernel kernel = clCreateKernel(program, "${KERNEL_NAME}", &err);
			CL_CHECK_ERROR(err, "Error creating MapPairs kernel '${KERNEL_NAME}' for device " << counter);
			kernel_table()[counter++] = kernel;
		}
	}

	static std::once_flag &build_flag()
	{
		static std::once_flag flag;
		return flag;
	}

	static std::mutex &table_mutex()
	{
		static std::mutex mutex;
		return mutex;
	}

	static std::unordered_map<size_t, cl_kernel> &kernel_table()
	{
		static std::unordered_map<size_t, cl_kernel> table;
		return table;
	}

	static std::unordered_map<size_t, cl_program> &program_table()
	{
		static std::unordered_map<size_t, cl_program> table;
		return table;
	}
};
""",
  name="MapPairs OpenCL wrapper",
)


class HostWrapperGenerator:
  """
  Renders the host wrapper class around a finished kernel source.
  """

  def __init__(self, max_devices: Optional[int] = None) -> None:
    self.max_devices = max_devices

  def device_limit_check(self, kernel_name: str) -> str:
    """The optional guard against more devices than configured."""
    if self.max_devices is None:
      return ""
    return (
      f"\t\tif (devices.size() > {self.max_devices})\n"
      f"\t\t\tSKELGEN_ERROR(\"Kernel '{kernel_name}' supports at most {self.max_devices} devices, found \" "
      f"<< devices.size());"
    )

  def generate(self, wrapper_name: str, kernel_name: str, kernel_source: str, params: KernelParameters) -> str:
    """
    Renders the wrapper class.

    Args:
        wrapper_name: C++ class name.
        kernel_name: OpenCL entry point name.
        kernel_source: Complete OpenCL program text.
        params: Host parameter list and marshaling expressions.

    Returns:
        str: C++ source of the wrapper, kernel source embedded.

    Raises:
        TemplateError: If the kernel source would terminate the raw string literal.
    """
    if RAW_STRING_CLOSE in kernel_source:
      raise TemplateError(f"Kernel '{kernel_name}' source contains the raw string terminator {RAW_STRING_CLOSE}")

    return MAP_PAIRS_WRAPPER.render(
      {
        "WRAPPER_NAME": wrapper_name,
        "KERNEL_NAME": kernel_name,
        "KERNEL_SOURCE": kernel_source,
        "HOST_PARAMS": ", ".join(params.host_params),
        "KERNEL_ARGS": ", ".join(params.kernel_args),
        "DEVICE_LIMIT_CHECK": self.device_limit_check(kernel_name),
      }
    )
