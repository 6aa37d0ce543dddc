"""Tests for YAML binding manifests."""

import tempfile
from pathlib import Path

import pytest

from idlbind.config import GeneratorConfig
from idlbind.errors import ManifestError, MissingParameterError, UnknownKeyError
from idlbind.generator import BindingGenerator
from idlbind.manifest import load_manifest, parse_manifest

FIXTURES = Path(__file__).parent / "fixtures"

MANIFEST = """\
bindings:
  - name: test_spl
    id: TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA
    idl_path: spl_token.json
    idl_version: 1

  - name: pump
    idl_path: pump_v2.json
    idl_version: 2
"""


def test_parse_manifest():
    directives = parse_manifest(MANIFEST, FIXTURES / "bindings.yaml")
    assert [d.name for d in directives] == ["test_spl", "pump"]
    assert directives[0].id == "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
    assert directives[1].id is None
    assert directives[1].schema_version == 2


def test_relative_paths_resolve_against_manifest_dir():
    directives = parse_manifest(MANIFEST, FIXTURES / "bindings.yaml")
    assert Path(directives[0].document_path) == FIXTURES / "spl_token.json"


def test_entries_carry_line_numbers():
    directives = parse_manifest(MANIFEST, "bindings.yaml")
    assert directives[0].location.line == 2
    assert directives[1].location.line == 7
    assert str(directives[1].location) == "bindings.yaml:7"


def test_manifest_directives_generate():
    generator = BindingGenerator()
    modules = [generator.generate(d) for d in parse_manifest(MANIFEST, FIXTURES / "x.yaml")]
    assert [m.program.program_name for m in modules] == ["spl_token", "pump"]


def test_entry_errors_point_at_entry():
    text = "bindings:\n  - name: a\n    idl_path: a.json\n  - name: b\n    idl_paht: b.json\n"
    with pytest.raises(UnknownKeyError) as exc:
        parse_manifest(text, "m.yaml")
    assert exc.value.key == "idl_paht"
    assert str(exc.value).startswith("m.yaml:4: ")


def test_missing_parameter_in_entry():
    with pytest.raises(MissingParameterError):
        parse_manifest("bindings:\n  - idl_path: a.json\n")


def test_invalid_manifests():
    with pytest.raises(ManifestError):
        parse_manifest("bindings: [unclosed")
    with pytest.raises(ManifestError):
        parse_manifest("- name: a\n")
    with pytest.raises(ManifestError):
        parse_manifest("bindings:\n  - just a string\n")


def test_load_manifest_from_disk():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "bindings.yaml"
        path.write_text("bindings:\n  - name: a\n    idl_path: idl/a.json\n")
        (directive,) = load_manifest(path)
        assert Path(directive.document_path) == Path(tmp) / "idl" / "a.json"


def test_load_missing_manifest():
    with pytest.raises(ManifestError):
        load_manifest("/nonexistent/bindings.yaml")


def test_duplicate_module_names_rejected():
    text = MANIFEST + "  - name: pump\n    idl_path: other.json\n"
    with pytest.raises(ManifestError) as exc:
        parse_manifest(text, "m.yaml")
    assert str(exc.value) == "m.yaml:10: Duplicate module name 'pump' (first declared at m.yaml:7)"


def test_relative_manifest_path_with_base_dir(monkeypatch):
    monkeypatch.chdir(FIXTURES.parent)
    directives = parse_manifest(MANIFEST, Path("fixtures") / "bindings.yaml")
    assert Path(directives[1].document_path).is_absolute()
    assert Path(directives[1].document_path).resolve() == (FIXTURES / "pump_v2.json").resolve()

    with tempfile.TemporaryDirectory() as tmp:
        generator = BindingGenerator(GeneratorConfig(base_dir=Path(tmp)))
        modules = [generator.generate(d) for d in directives]
    assert [m.program.program_name for m in modules] == ["spl_token", "pump"]
