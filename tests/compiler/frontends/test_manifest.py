"""
Tests for Front-End Manifest Ingestion.

Verifies:
1. Conversion of a well-formed manifest into program metadata.
2. Structural validation by the Pydantic schemas.
3. Cross-checks (unknown functions, arity, undeclared types, disallowed calls).
"""

import copy
import json

import pytest

from skelgen.compiler.errors import MetadataError
from skelgen.compiler.frontends import load_manifest, parse_manifest
from skelgen.enums import ContainerKind, IndexingMode, ParamSide, SkeletonKind

FULL_MANIFEST = {
  "functions": [
    {
      "name": "dist",
      "unique_name": "dist_1",
      "indexing": "row_col",
      "double_precision": True,
      "return_type": "double",
      "body": "\treturn sqrt(a.x - b.x) * scale + SCALE;",
      "elementwise": [{"name": "a", "type": "Point"}, {"name": "b", "type": "Point"}],
      "containers": [{"name": "weights", "type": "double", "kind": "matrix_row"}],
      "scalars": [{"name": "scale", "type": "double"}],
      "types": ["Point"],
      "calls": ["sqrt"],
    }
  ],
  "types": [
    {"name": "Point", "definition": "typedef struct { Coord x; } Point;", "depends_on": ["Coord"]},
    {"name": "Coord", "definition": "typedef double Coord;"},
  ],
  "constants": [{"name": "SCALE", "definition": "1.5", "type": "double"}],
  "instances": [{"skeleton": "map_pairs", "function": "dist", "varity": 1, "harity": 1}],
}


@pytest.fixture
def manifest():
  return copy.deepcopy(FULL_MANIFEST)


def test_parse_full_manifest(manifest):
  program = parse_manifest(manifest, allowed_functions=["sqrt"])

  (instance,) = program.instances
  func = instance.function
  assert instance.skeleton == SkeletonKind.MAP_PAIRS
  assert func.unique_name == "dist_1"
  assert func.indexing_mode == IndexingMode.ROW_COL
  assert func.requires_double_precision
  assert [p.side for p in func.elwise_params] == [ParamSide.VERTICAL, ParamSide.HORIZONTAL]
  assert func.container_params[0].kind == ContainerKind.MATRIX_ROW
  assert func.scalar_params[0].name == "scale"
  assert program.functions["dist_1"] is func
  assert [c.name for c in program.constants] == ["SCALE"]
  assert [t.name for t in program.referenced_types(func)] == ["Coord", "Point"]


def test_parse_json_text(add_manifest):
  program = parse_manifest(json.dumps(add_manifest))
  assert program.instances[0].function.unique_name == "add"


def test_load_manifest_file(tmp_path, add_manifest):
  path = tmp_path / "prog.json"
  path.write_text(json.dumps(add_manifest))
  assert len(load_manifest(path).instances) == 1


def test_load_manifest_errors(tmp_path):
  with pytest.raises(MetadataError, match="Cannot read"):
    load_manifest(tmp_path / "missing.json")

  bad = tmp_path / "bad.json"
  bad.write_text("{ not json")
  with pytest.raises(MetadataError, match="not valid JSON"):
    load_manifest(bad)

  listed = tmp_path / "list.json"
  listed.write_text("[]")
  with pytest.raises(MetadataError, match="JSON object"):
    load_manifest(listed)


def test_schema_rejects_unknown_keys(add_manifest):
  data = copy.deepcopy(add_manifest)
  data["functions"][0]["colour"] = "red"
  with pytest.raises(MetadataError, match="Invalid skeleton manifest"):
    parse_manifest(data)


def test_schema_rejects_unknown_container_kind(manifest):
  manifest["functions"][0]["containers"][0]["kind"] = "hashmap"
  with pytest.raises(MetadataError):
    parse_manifest(manifest, ["sqrt"])


def test_unknown_instance_function(add_manifest):
  data = copy.deepcopy(add_manifest)
  data["instances"][0]["function"] = "ghost"
  with pytest.raises(MetadataError, match="unknown user function 'ghost'"):
    parse_manifest(data)


def test_map_pairs_arity_mismatch(add_manifest):
  data = copy.deepcopy(add_manifest)
  data["instances"][0]["harity"] = 2
  with pytest.raises(MetadataError, match="2 elementwise parameters"):
    parse_manifest(data)


def test_disallowed_call(manifest):
  with pytest.raises(MetadataError, match="calls 'sqrt'"):
    parse_manifest(manifest, allowed_functions=[])


def test_user_function_calls_are_allowed(add_manifest):
  data = copy.deepcopy(add_manifest)
  helper = {"name": "helper", "return_type": "float", "body": "\treturn 1;"}
  data["functions"].append(helper)
  data["functions"][0]["calls"] = ["helper"]
  assert len(parse_manifest(data).functions) == 1


def test_undeclared_type(manifest):
  manifest["functions"][0]["types"] = ["Ghost"]
  with pytest.raises(MetadataError, match="undeclared type 'Ghost'"):
    parse_manifest(manifest, ["sqrt"])


def test_undeclared_dependency(manifest):
  manifest["types"][0]["depends_on"] = ["Ghost"]
  with pytest.raises(MetadataError, match="depends on undeclared type 'Ghost'"):
    parse_manifest(manifest, ["sqrt"])


def test_duplicate_function(add_manifest):
  data = copy.deepcopy(add_manifest)
  data["functions"].append(copy.deepcopy(data["functions"][0]))
  with pytest.raises(MetadataError, match="declared twice"):
    parse_manifest(data)
