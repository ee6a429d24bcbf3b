from __future__ import annotations

import pytest

from matchreel.utils import collapse_whitespace, expand_env, import_string, load_yaml_file, parse_bool


def test_collapse_whitespace() -> None:
    assert collapse_whitespace("  a \n\t b  ") == "a b"


def test_expand_env_walks_nested_values(monkeypatch) -> None:
    monkeypatch.setenv("MATCHREEL_ROOT", "/data")
    value = {"paths": ["$MATCHREEL_ROOT/a", "${MATCHREEL_ROOT}/b"], "count": 2}
    assert expand_env(value) == {"paths": ["/data/a", "/data/b"], "count": 2}


class TestLoadYamlFile:
    def test_expands_variables_by_default(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("MATCHREEL_LEVEL", "DEBUG")
        path = tmp_path / "settings.yaml"
        path.write_text("level: $MATCHREEL_LEVEL\n", encoding="utf-8")
        assert load_yaml_file(path) == {"level": "DEBUG"}

    def test_expansion_can_be_disabled(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("MATCHREEL_LEVEL", "DEBUG")
        path = tmp_path / "source.yaml"
        path.write_text("pattern: 'x$MATCHREEL_LEVEL'\n", encoding="utf-8")
        assert load_yaml_file(path, expand_vars=False) == {"pattern": "x$MATCHREEL_LEVEL"}

    def test_empty_file_is_empty_mapping(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml_file(path) == {}


class TestParseBool:
    @pytest.mark.parametrize("value", ["1", "true", "Yes", "ON", " y "])
    def test_parses_truthy_values(self, value: str) -> None:
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "No", "OFF", "n"])
    def test_parses_falsy_values(self, value: str) -> None:
        assert parse_bool(value) is False

    def test_returns_none_for_none(self) -> None:
        assert parse_bool(None) is None

    def test_returns_none_for_unrecognized(self) -> None:
        assert parse_bool("maybe") is None


class TestImportString:
    def test_imports_nested_attribute(self) -> None:
        assert import_string("matchreel.models:Fixture.matchday")(3).title == "Matchday 3"

    def test_requires_colon(self) -> None:
        with pytest.raises(ValueError):
            import_string("matchreel.models.Fixture")

    def test_missing_module(self) -> None:
        with pytest.raises(ImportError):
            import_string("matchreel.no_such_module:thing")
