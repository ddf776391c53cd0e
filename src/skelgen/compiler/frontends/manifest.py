"""
Front-End Manifest Ingestion.

The source front-end (which parses annotated user programs) describes what it
found as a JSON manifest: user functions with their classified parameters,
user types, user constants and the skeleton instantiations. This module
validates that manifest with Pydantic schemas and converts it into the plain
metadata model of :mod:`skelgen.compiler.ir`.

Conversion is the only place that cross-checks the manifest:

* instantiations must name a known user function, and MapPairs arity must
  match the function's elementwise parameter count;
* referenced user types must be declared;
* functions called from user function bodies must be other user functions or
  appear in the configured allow-list.
"""

import json
from pathlib import Path
from typing import Collection, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skelgen.compiler.errors import MetadataError
from skelgen.compiler.ir import (
  ContainerParam,
  ProgramMetadata,
  ScalarParam,
  SkeletonInstance,
  SkeletonShape,
  UserConstant,
  UserFunction,
  UserType,
  assign_sides,
)
from skelgen.enums import ContainerKind, IndexingMode, SkeletonKind


class ParamSchema(BaseModel):
  """An elementwise or scalar parameter."""

  model_config = ConfigDict(extra="forbid")

  name: str
  type: str = Field(..., description="Resolved type name as spelled in generated code.")


class ContainerSchema(ParamSchema):
  """A random-access container parameter."""

  kind: ContainerKind


class FunctionSchema(BaseModel):
  """
  One user function as reported by the front-end.
  """

  model_config = ConfigDict(extra="forbid")

  name: str
  unique_name: Optional[str] = Field(None, description="Globally distinct name. Defaults to `name`.")
  indexing: IndexingMode = IndexingMode.NONE
  index_param: str = "index"
  double_precision: bool = False
  return_type: str
  body: str = ""
  elementwise: List[ParamSchema] = Field(default_factory=list)
  containers: List[ContainerSchema] = Field(default_factory=list)
  scalars: List[ParamSchema] = Field(default_factory=list)
  types: List[str] = Field(default_factory=list, description="User types referenced by the function.")
  calls: List[str] = Field(default_factory=list, description="Functions called from the body.")


class TypeSchema(BaseModel):
  """A user-defined type and its definition text."""

  model_config = ConfigDict(extra="forbid")

  name: str
  definition: str
  depends_on: List[str] = Field(default_factory=list)


class ConstantSchema(BaseModel):
  """A user constant."""

  model_config = ConfigDict(extra="forbid")

  name: str
  definition: str
  type: str


class InstanceSchema(BaseModel):
  """A skeleton instantiation."""

  model_config = ConfigDict(extra="forbid")

  skeleton: SkeletonKind
  function: str
  varity: int = Field(1, ge=0)
  harity: int = Field(1, ge=0)


class ManifestSchema(BaseModel):
  """
  Root of the front-end manifest.
  """

  model_config = ConfigDict(extra="forbid")

  functions: List[FunctionSchema] = Field(default_factory=list)
  types: List[TypeSchema] = Field(default_factory=list)
  constants: List[ConstantSchema] = Field(default_factory=list)
  instances: List[InstanceSchema] = Field(default_factory=list)


def parse_manifest(
  data: Union[str, bytes, dict],
  allowed_functions: Collection[str] = (),
) -> ProgramMetadata:
  """
  Validates a manifest and converts it to program metadata.

  Args:
      data: JSON text or an already decoded dictionary.
      allowed_functions: External function names user functions may call.

  Returns:
      ProgramMetadata: The run's metadata graph.

  Raises:
      MetadataError: If the manifest is malformed or inconsistent.
  """
  try:
    if isinstance(data, dict):
      schema = ManifestSchema.model_validate(data)
    else:
      schema = ManifestSchema.model_validate_json(data)
  except ValidationError as e:
    raise MetadataError(f"Invalid skeleton manifest:\n{e}") from e

  return _build_program(schema, set(allowed_functions))


def load_manifest(path: Path, allowed_functions: Collection[str] = ()) -> ProgramMetadata:
  """
  Reads and converts a manifest file.

  Args:
      path: Path to the JSON manifest.
      allowed_functions: External function names user functions may call.

  Returns:
      ProgramMetadata: The run's metadata graph.

  Raises:
      MetadataError: If the file cannot be read or is invalid.
  """
  try:
    text = path.read_text(encoding="utf-8")
  except OSError as e:
    raise MetadataError(f"Cannot read manifest {path}: {e}") from e
  try:
    decoded = json.loads(text)
  except json.JSONDecodeError as e:
    raise MetadataError(f"Manifest {path} is not valid JSON: {e}") from e
  if not isinstance(decoded, dict):
    raise MetadataError(f"Manifest {path} must hold a JSON object")
  return parse_manifest(decoded, allowed_functions)


def _build_program(schema: ManifestSchema, allowed: set) -> ProgramMetadata:
  program = ProgramMetadata()

  for t in schema.types:
    if t.name in program.types:
      raise MetadataError(f"User type '{t.name}' declared twice")
    program.types[t.name] = UserType(t.name, t.definition, tuple(t.depends_on))

  for t in program.types.values():
    for dep in t.dependencies:
      if dep not in program.types:
        raise MetadataError(f"User type '{t.name}' depends on undeclared type '{dep}'")

  program.constants = [UserConstant(c.name, c.definition, c.type) for c in schema.constants]

  by_name: Dict[str, FunctionSchema] = {}
  for fn in schema.functions:
    if fn.name in by_name:
      raise MetadataError(f"User function '{fn.name}' declared twice")
    by_name[fn.name] = fn

  callable_names = allowed | set(by_name)
  for fn in schema.functions:
    for type_name in fn.types:
      if type_name not in program.types:
        raise MetadataError(f"User function '{fn.name}' references undeclared type '{type_name}'")
    for callee in fn.calls:
      if callee not in callable_names:
        raise MetadataError(
          f"User function '{fn.name}' calls '{callee}', which is neither a user function nor an allowed function"
        )

  for inst in schema.instances:
    fn = by_name.get(inst.function)
    if fn is None:
      raise MetadataError(f"{inst.skeleton.value} instantiation references unknown user function '{inst.function}'")
    shape = SkeletonShape(inst.varity, inst.harity)
    if inst.skeleton == SkeletonKind.MAP_PAIRS and shape.arity != len(fn.elementwise):
      raise MetadataError(
        f"MapPairs<{fn.name}> pairs Varity={shape.varity} with Harity={shape.harity}, "
        f"but the function has {len(fn.elementwise)} elementwise parameters"
      )
    func = _build_function(fn, shape.varity)
    program.functions.setdefault(func.unique_name, func)
    program.instances.append(SkeletonInstance(inst.skeleton, func, shape))

  return program


def _build_function(fn: FunctionSchema, varity: int) -> UserFunction:
  return UserFunction(
    name=fn.name,
    unique_name=fn.unique_name or fn.name,
    return_type=fn.return_type,
    body=fn.body,
    indexing_mode=fn.indexing,
    requires_double_precision=fn.double_precision,
    elwise_params=assign_sides([(p.name, p.type) for p in fn.elementwise], varity),
    container_params=tuple(ContainerParam(p.name, p.type, p.kind) for p in fn.containers),
    scalar_params=tuple(ScalarParam(p.name, p.type) for p in fn.scalars),
    referenced_types=tuple(fn.types),
    called_functions=tuple(fn.calls),
    index_param_name=fn.index_param,
  )
