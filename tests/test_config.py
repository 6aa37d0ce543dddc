"""Tests for generator configuration."""

from pathlib import Path

from idlbind.config import DEFAULT_RUNTIME_MODULE, GeneratorConfig


def test_defaults(monkeypatch):
    for var in ("IDLBIND_BASE_DIR", "IDLBIND_RUNTIME_MODULE", "IDLBIND_ENCODING"):
        monkeypatch.delenv(var, raising=False)
    config = GeneratorConfig.from_env()
    assert config.base_dir is None
    assert config.runtime_module == DEFAULT_RUNTIME_MODULE
    assert config.encoding == "utf-8"


def test_from_env(monkeypatch):
    monkeypatch.setenv("IDLBIND_BASE_DIR", "/srv/idl")
    monkeypatch.setenv("IDLBIND_RUNTIME_MODULE", "app.runtime")
    monkeypatch.setenv("IDLBIND_ENCODING", "utf-8-sig")
    config = GeneratorConfig.from_env()
    assert config.base_dir == Path("/srv/idl")
    assert config.runtime_module == "app.runtime"
    assert config.encoding == "utf-8-sig"


def test_overrides_skip_none():
    config = GeneratorConfig(runtime_module="app.runtime")
    updated = config.with_overrides(base_dir=Path("/tmp"), runtime_module=None)
    assert updated.base_dir == Path("/tmp")
    assert updated.runtime_module == "app.runtime"
    assert config.base_dir is None
