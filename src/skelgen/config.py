"""
Runtime Configuration Store.

Holds the driver options that steer code generation: where artifacts go,
which backends are emitted, verbosity, and which external functions user
functions may call. Values come from ``[tool.skelgen]`` in the nearest
``pyproject.toml`` and are overridden by command-line arguments.
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from skelgen.enums import BackendKind

# Functions callable from user functions without further declaration.
DEFAULT_ALLOWED_FUNCTIONS = (
  "exp",
  "exp2",
  "exp2f",
  "sqrt",
  "abs",
  "fabs",
  "max",
  "fmax",
  "pow",
  "log",
  "log2",
  "log10",
  "sin",
  "sinh",
  "asin",
  "asinh",
  "cos",
  "cosh",
  "acos",
  "acosh",
  "tan",
  "tanh",
  "atan",
  "atanh",
  "round",
  "ceil",
  "floor",
  "erf",
  "printf",
)


class RuntimeConfig(BaseModel):
  """
  Global configuration container for one generator run.
  """

  output_dir: Path = Field(Path("."), description="Directory receiving generated artifacts.")
  output_name: str = Field("skelgen_out", description="Base name of the main output file (no extension).")

  openmp: bool = Field(False, description="Generate the OpenMP backend.")
  cuda: bool = Field(False, description="Generate the CUDA backend.")
  opencl: bool = Field(False, description="Generate the OpenCL backend.")
  starpu_mpi: bool = Field(False, description="Generate the StarPU-MPI backend.")
  mpi: bool = Field(False, description="Generate the MPI backend.")

  verbose: bool = Field(False, description="Verbose logging printout.")
  silent: bool = Field(False, description="Disable normal printouts.")
  override_extension: bool = Field(False, description="Do not append an extension to the main output file.")
  preserve_lines: bool = Field(True, description="Try to preserve line numbers from the source file.")

  allowed_functions: List[str] = Field(
    default_factory=lambda: list(DEFAULT_ALLOWED_FUNCTIONS),
    description="External function names callable from user functions.",
  )
  max_devices: Optional[int] = Field(None, description="Upper bound on compute devices per kernel. None = unbounded.")

  @field_validator("max_devices")
  @classmethod
  def validate_max_devices(cls, v: Optional[int]) -> Optional[int]:
    """
    Rejects non-positive device limits.

    Raises:
        ValueError: If the limit is zero or negative.
    """
    if v is not None and v < 1:
      raise ValueError(f"max_devices must be positive, got {v}")
    return v

  @field_validator("output_name")
  @classmethod
  def validate_output_name(cls, v: str) -> str:
    """Rejects an empty base name."""
    if not v.strip():
      raise ValueError("output_name must not be empty")
    return v.strip()

  @property
  def enabled_backends(self) -> List[BackendKind]:
    """
    Backends selected for emission, in a fixed order.

    Returns:
        List[BackendKind]: Enabled backends.
    """
    flags = {
      BackendKind.OPENMP: self.openmp,
      BackendKind.CUDA: self.cuda,
      BackendKind.OPENCL: self.opencl,
      BackendKind.STARPU_MPI: self.starpu_mpi,
      BackendKind.MPI: self.mpi,
    }
    return [kind for kind, on in flags.items() if on]

  @property
  def main_output_path(self) -> Path:
    """
    Path of the rewritten main source file.

    The extension is ``.cu`` when CUDA is generated and ``.cpp`` otherwise,
    unless ``override_extension`` is set.
    """
    if self.override_extension:
      return self.output_dir / self.output_name
    ext = ".cu" if self.cuda else ".cpp"
    return self.output_dir / f"{self.output_name}{ext}"

  def is_allowed_function(self, name: str) -> bool:
    """Checks the external function allow-list."""
    return name in self.allowed_functions

  @classmethod
  def load(
    cls,
    output_dir: Optional[Path] = None,
    output_name: Optional[str] = None,
    backends: Optional[Dict[str, bool]] = None,
    verbose: Optional[bool] = None,
    silent: Optional[bool] = None,
    override_extension: Optional[bool] = None,
    preserve_lines: Optional[bool] = None,
    extra_functions: Optional[List[str]] = None,
    max_devices: Optional[int] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        output_dir: Override for the artifact directory.
        output_name: Override for the main output base name.
        backends: Backend flags keyed by field name (``opencl``, ``cuda``, ...).
            Only ``True`` values override the TOML setting.
        verbose: Override for verbose logging.
        silent: Override for silent mode.
        override_extension: Override for extension suppression.
        preserve_lines: Override for line preservation.
        extra_functions: Names appended to the allow-list.
        max_devices: Override for the device limit.
        search_path: Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, toml_dir = _load_toml_settings(start_dir)

    final_dir = output_dir
    if final_dir is None and "output_dir" in toml_config:
      final_dir = Path(toml_config["output_dir"])
      if toml_dir and not final_dir.is_absolute():
        final_dir = toml_dir / final_dir
    final_dir = final_dir or Path(".")

    values: Dict[str, Any] = {
      "output_dir": final_dir,
      "output_name": output_name or toml_config.get("output_name", "skelgen_out"),
    }

    cli_backends = backends or {}
    for kind in BackendKind:
      values[kind.value] = bool(cli_backends.get(kind.value)) or bool(toml_config.get(kind.value, False))

    overrides = {
      "verbose": verbose,
      "silent": silent,
      "override_extension": override_extension,
      "preserve_lines": preserve_lines,
      "max_devices": max_devices,
    }
    for key, cli_value in overrides.items():
      if cli_value is not None:
        values[key] = cli_value
      elif key in toml_config:
        values[key] = toml_config[key]

    allowed = list(DEFAULT_ALLOWED_FUNCTIONS)
    for name in [*toml_config.get("allowed_functions", []), *(extra_functions or [])]:
      if name not in allowed:
        allowed.append(name)
    values["allowed_functions"] = allowed

    return cls(**values)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches start_path and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError:
        return {}, None
      return data.get("tool", {}).get("skelgen", {}), parent

  return {}, None


def split_function_names(raw: Optional[str]) -> List[str]:
  """
  Splits a space separated ``--fnames`` value (e.g. ``"conj csqrt"``).

  Args:
      raw: The raw option string.

  Returns:
      List[str]: Individual function names.
  """
  if not raw:
    return []
  return raw.split()
