"""
OpenCL Backend Package.

Contains the generators that turn skeleton metadata into OpenCL C kernels and
their C++ host dispatch wrappers.
"""

from skelgen.compiler.backends.opencl.kernel import KernelParameters, KernelTemplateEngine
from skelgen.compiler.backends.opencl.mappairs import MapPairsOpenCLBackend
from skelgen.compiler.backends.opencl.proxies import ContainerProxyGenerator, ProxyBinding
from skelgen.compiler.backends.opencl.wrapper import HostWrapperGenerator

__all__ = [
  "ContainerProxyGenerator",
  "HostWrapperGenerator",
  "KernelParameters",
  "KernelTemplateEngine",
  "MapPairsOpenCLBackend",
  "ProxyBinding",
]
