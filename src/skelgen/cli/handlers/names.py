"""CLI handler for the names command."""

from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.table import Table

from skelgen.compiler.errors import MetadataError
from skelgen.compiler.frontends.manifest import load_manifest
from skelgen.compiler.naming import kernel_name, wrapper_name
from skelgen.config import RuntimeConfig
from skelgen.utils.console import console, log_error


def handle_names(manifest_path: Path, output_name: Optional[str]) -> int:
  """Handles 'names' command: lists kernel and wrapper names without generating."""
  if not manifest_path.is_file():
    log_error(f"Manifest not found: {escape(str(manifest_path))}")
    return 1

  try:
    config = RuntimeConfig.load(output_name=output_name or manifest_path.stem, search_path=manifest_path.parent)
  except ValueError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return 1

  try:
    program = load_manifest(manifest_path, config.allowed_functions)
  except MetadataError as e:
    log_error(escape(str(e)))
    return 1

  table = Table(title=f"Kernels for {config.output_name}")
  table.add_column("Instance", style="cyan")
  table.add_column("Kernel", style="bold magenta")
  table.add_column("Wrapper")
  for instance in program.instances:
    kname = kernel_name(config.output_name, instance.skeleton, instance.function.unique_name, instance.shape)
    table.add_row(escape(instance.describe()), kname, wrapper_name(kname))
  console.print(table)
  return 0
