"""
Main Entry Point for the skelgen CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `skelgen.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from skelgen import __version__
from skelgen.cli import commands
from skelgen.config import split_function_names


def _positive_int(raw: str) -> int:
  value = int(raw)
  if value < 1:
    raise argparse.ArgumentTypeError(f"must be positive, got {value}")
  return value


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="skelgen: skeleton kernel source-to-source generator")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: GENERATE ---
  cmd_gen = subparsers.add_parser("generate", help="Generate backend kernels from a front-end manifest")
  cmd_gen.add_argument("manifest", type=Path, help="JSON manifest produced by the front-end")
  cmd_gen.add_argument("--dir", type=Path, default=None, help="Directory of output files")
  cmd_gen.add_argument("--name", default=None, help="File name of main output file (without extension)")
  cmd_gen.add_argument("--openmp", action="store_true", help="Generate OpenMP backend")
  cmd_gen.add_argument("--cuda", action="store_true", help="Generate CUDA backend")
  cmd_gen.add_argument("--opencl", action="store_true", help="Generate OpenCL backend")
  cmd_gen.add_argument("--starpu-mpi", action="store_true", help="Generate StarPU-MPI backend")
  cmd_gen.add_argument("--mpi", action="store_true", help="Generate MPI backend")
  cmd_gen.add_argument("--verbose", action="store_true", default=None, help="Verbose logging printout")
  cmd_gen.add_argument("--silent", action="store_true", default=None, help="Disable normal printouts")
  cmd_gen.add_argument(
    "--override-extension",
    action="store_true",
    default=None,
    help="Do not automatically add file extension to output file",
  )
  cmd_gen.add_argument(
    "--no-preserve-lines",
    action="store_false",
    dest="preserve_lines",
    default=None,
    help="Do not try to preserve line numbers from source file",
  )
  cmd_gen.add_argument(
    "--fnames",
    default=None,
    help='Function names callable from user functions, separated by space (e.g. --fnames "conj csqrt")',
  )
  cmd_gen.add_argument("--max-devices", type=_positive_int, default=None, help="Device limit for kernel wrappers")

  # --- Command: NAMES ---
  cmd_names = subparsers.add_parser("names", help="List kernel and wrapper names for a manifest")
  cmd_names.add_argument("manifest", type=Path, help="JSON manifest produced by the front-end")
  cmd_names.add_argument("--name", default=None, help="Output base name used in kernel names")

  args = parser.parse_args(argv)

  if args.command == "generate":
    backends = {
      "openmp": args.openmp,
      "cuda": args.cuda,
      "opencl": args.opencl,
      "starpu_mpi": args.starpu_mpi,
      "mpi": args.mpi,
    }
    return commands.handle_generate(
      args.manifest,
      args.dir,
      args.name,
      backends,
      args.verbose,
      args.silent,
      args.override_extension,
      args.preserve_lines,
      split_function_names(args.fnames),
      args.max_devices,
    )

  elif args.command == "names":
    return commands.handle_names(args.manifest, args.name)

  return 0


if __name__ == "__main__":
  sys.exit(main())
