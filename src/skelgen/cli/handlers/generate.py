"""
Generate Command Handler.

This module implements the logic for the `skelgen generate` command:

1. Configuration loading (pyproject.toml + CLI overrides).
2. Manifest ingestion into program metadata.
3. Artifact generation via the Engine.
4. Failure reporting.
"""

from pathlib import Path
from typing import Dict, List, Optional

from rich.markup import escape
from rich.table import Table

from skelgen.compiler.errors import MetadataError
from skelgen.compiler.frontends.manifest import load_manifest
from skelgen.config import RuntimeConfig
from skelgen.core.engine import GenerationEngine, GenerationResult
from skelgen.enums import BackendKind
from skelgen.utils.console import configure_verbosity, console, log_error, log_info


def handle_generate(
  manifest_path: Path,
  output_dir: Optional[Path],
  output_name: Optional[str],
  backends: Dict[str, bool],
  verbose: Optional[bool],
  silent: Optional[bool],
  override_extension: Optional[bool],
  preserve_lines: Optional[bool],
  extra_functions: List[str],
  max_devices: Optional[int],
) -> int:
  """
  Handles the 'generate' command execution.

  Args:
      manifest_path: Front-end manifest describing the program.
      output_dir: Override for the artifact directory.
      output_name: Override for the main output base name.
      backends: Backend flags from the command line.
      verbose: Enable verbose logging.
      silent: Disable normal printouts.
      override_extension: Do not append an extension to the main output file.
      preserve_lines: Try to preserve source line numbers.
      extra_functions: Additional names callable from user functions.
      max_devices: Device limit for generated wrappers.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not manifest_path.is_file():
    log_error(f"Manifest not found: {escape(str(manifest_path))}")
    return 1

  try:
    config = RuntimeConfig.load(
      output_dir=output_dir,
      output_name=output_name or manifest_path.stem,
      backends=backends,
      verbose=verbose,
      silent=silent,
      override_extension=override_extension,
      preserve_lines=preserve_lines,
      extra_functions=extra_functions,
      max_devices=max_devices,
      search_path=manifest_path.parent,
    )
  except ValueError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return 1

  configure_verbosity(config.verbose, config.silent)
  if not config.silent:
    _print_banner(config)

  try:
    program = load_manifest(manifest_path, config.allowed_functions)
  except MetadataError as e:
    log_error(escape(str(e)))
    return 1

  log_info(f"Loaded {len(program.instances)} skeleton instance(s) from [path]{escape(str(manifest_path))}[/path]")
  result = GenerationEngine(config, program).run()
  _print_failures(result)
  return 0 if result.success else 1


def _print_banner(config: RuntimeConfig) -> None:
  """
  Renders the enabled backends and the main output file.
  """
  table = Table(title="skelgen source-to-source generator", show_header=False)
  table.add_column("Option", style="cyan")
  table.add_column("Value")
  enabled = config.enabled_backends
  for kind in BackendKind:
    table.add_row(f"{kind.value} gen", "[green]ON[/green]" if kind in enabled else "OFF")
  table.add_row("Main output file", escape(str(config.main_output_path)))
  console.print(table)


def _print_failures(result: GenerationResult) -> None:
  if result.success:
    return
  table = Table(title="Generation Report")
  table.add_column("Artifact", style="red")
  for message in result.errors:
    table.add_row(escape(message))
  console.print(table)
  console.print(
    f"\n[bold]Summary:[/bold] {len(result.artifacts)} generated, {len(result.errors)} failed, "
    f"{len(result.skipped)} skipped."
  )
