"""
MapPairs OpenCL Backend.

Orchestrates proxy generation, kernel template filling and wrapper emission
for one MapPairs instantiation, and names the resulting artifact
``<kernelName>_cl_source.inl`` in the configured output directory.
"""

from skelgen.compiler.backend import CompilerBackend
from skelgen.compiler.backends.opencl.kernel import KernelTemplateEngine
from skelgen.compiler.backends.opencl.proxies import ContainerProxyGenerator
from skelgen.compiler.backends.opencl.wrapper import HostWrapperGenerator
from skelgen.compiler.errors import MetadataError
from skelgen.compiler.ir import GeneratedArtifact, SkeletonInstance, validate_user_function
from skelgen.compiler.naming import kernel_name, wrapper_name
from skelgen.enums import BackendKind, SkeletonKind
from skelgen.utils.console import log_debug

ARTIFACT_SUFFIX = "_cl_source.inl"


class MapPairsOpenCLBackend(CompilerBackend):
  """
  Generates the OpenCL kernel and host wrapper for MapPairs instantiations.
  """

  skeleton = SkeletonKind.MAP_PAIRS
  backend = BackendKind.OPENCL

  def generate(self, instance: SkeletonInstance) -> GeneratedArtifact:
    """
    Generates the artifact for one MapPairs instantiation.

    Args:
        instance: The MapPairs instantiation.

    Returns:
        GeneratedArtifact: The unwritten artifact.

    Raises:
        GenerationError: On invalid metadata, a name collision or a
            template slot without a value.
    """
    if instance.skeleton != self.skeleton:
      raise MetadataError(f"{type(self).__name__} cannot generate {instance.skeleton.value} instantiations")

    func = instance.function
    validate_user_function(func, instance.shape)

    kname = kernel_name(self.config.output_name, instance.skeleton, func.unique_name, instance.shape)
    self.names.claim(kname, (instance.describe(), func.unique_name))
    wname = wrapper_name(kname)

    engine = KernelTemplateEngine(ContainerProxyGenerator())
    params = engine.parameters(func)
    kernel_source = engine.kernel_source(
      kname,
      func,
      params,
      types=self.program.referenced_types(func),
      constants=self.program.constants,
    )

    source_text = HostWrapperGenerator(self.config.max_devices).generate(wname, kname, kernel_source, params)

    log_debug(f"Generated {wname} ({len(params.signature)} kernel arguments)")
    return GeneratedArtifact(
      kernel_name=kname,
      wrapper_name=wname,
      source_text=source_text,
      output_path=self.config.output_dir / f"{kname}{ARTIFACT_SUFFIX}",
      kernel_source=kernel_source,
      kernel_signature=params.signature,
    )
