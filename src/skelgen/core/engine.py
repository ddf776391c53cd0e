"""
Generation Engine.

Drives one compilation run: for every skeleton instantiation and every
enabled backend it looks up the registered generator, produces the artifact
and writes it to the output directory.

Failures are isolated per artifact. A :class:`~skelgen.compiler.errors.SkelgenError`
aborts only the artifact being generated; the diagnostic names the skeleton
instantiation, the user function and the backend. Artifacts are written
atomically, so earlier outputs are never corrupted. Nothing is retried.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from rich.markup import escape

from skelgen.compiler.errors import SkelgenError
from skelgen.compiler.ir import GeneratedArtifact, ProgramMetadata, SkeletonInstance
from skelgen.compiler.naming import NameRegistry
from skelgen.compiler.registry import get_generator_class
from skelgen.config import RuntimeConfig
from skelgen.enums import BackendKind
from skelgen.utils.console import log_debug, log_error, log_success, log_warning


class ArtifactRecord(BaseModel):
  """Summary of one written artifact."""

  kernel_name: str
  wrapper_name: str
  backend: BackendKind
  path: Path


class GenerationResult(BaseModel):
  """
  Structured result of a generation run.
  """

  artifacts: List[ArtifactRecord] = Field(default_factory=list, description="Artifacts written to disk.")
  errors: List[str] = Field(default_factory=list, description="One diagnostic per failed artifact.")
  skipped: List[str] = Field(default_factory=list, description="Instantiations with no generator for a backend.")

  @property
  def success(self) -> bool:
    """True if no artifact failed."""
    return not self.errors


class GenerationEngine:
  """
  The main compilation unit.

  Holds the configuration, the program metadata and the run's name registry.
  """

  def __init__(self, config: RuntimeConfig, program: ProgramMetadata) -> None:
    self.config = config
    self.program = program
    self.names = NameRegistry()

  def generate(self, instance: SkeletonInstance, backend: BackendKind) -> Optional[GeneratedArtifact]:
    """
    Generates, without writing, the artifact for one instantiation and backend.

    Args:
        instance: The skeleton instantiation.
        backend: Target backend.

    Returns:
        Optional[GeneratedArtifact]: None if no generator handles the pair.

    Raises:
        SkelgenError: If generation fails.
    """
    generator_cls = get_generator_class(instance.skeleton, backend)
    if generator_cls is None:
      return None
    generator = generator_cls(self.config, self.program, self.names)
    return generator.generate(instance)

  def run(self) -> GenerationResult:
    """
    Generates and writes every artifact of the program.

    Returns:
        GenerationResult: Written artifacts, failures and skipped pairs.
    """
    result = GenerationResult()
    backends = self.config.enabled_backends
    if not backends:
      log_warning("No backend selected; nothing to generate.")
      return result

    for instance in self.program.instances:
      for backend in backends:
        label = f"{instance.describe()} [{backend.value}]"
        try:
          artifact = self.generate(instance, backend)
          if artifact is None:
            result.skipped.append(label)
            log_warning(f"No {backend.value} generator for {instance.skeleton.value}; skipping {escape(label)}")
            continue
          path = artifact.write()
        except (SkelgenError, OSError) as e:
          message = f"{label}, function '{instance.function.name}': {e}"
          result.errors.append(message)
          log_error(escape(message))
          continue

        log_debug(f"Wrote [path]{escape(str(path))}[/path]")
        result.artifacts.append(
          ArtifactRecord(
            kernel_name=artifact.kernel_name,
            wrapper_name=artifact.wrapper_name,
            backend=backend,
            path=path,
          )
        )

    if result.artifacts:
      log_success(f"Generated {len(result.artifacts)} artifact(s) in {self.config.output_dir}")
    return result
