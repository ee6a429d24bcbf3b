from __future__ import annotations

import datetime as dt
import re
from pathlib import Path

import pytest

from matchreel.config import (
    EngineSettings,
    HandlerSpec,
    data_source_from_dict,
    expand_regex_tokens,
    load_data_source,
    load_data_sources,
    load_settings,
    resolve_regex_tokens,
)
from matchreel.errors import ConfigError
from matchreel.handlers import parse_fixture
from matchreel.matcher import EntityMatcher
from matchreel.models import FileSize, Fixture, PartIdentifier, SEMI_FINAL
from matchreel.orchestrator import ExtractionOrchestrator
from matchreel.strategies import StrategyChain, build_registry

SAMPLES_DIR = Path(__file__).resolve().parents[1] / "samples"


def write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


MINIMAL_DATA_SOURCE = """
id: blog
name: The Blog
regex_tokens:
  team: "[A-Za-z ]+?"
pattern_kits:
  match:
    - pattern: "^(<team>) vs (<team>)$"
      flags: [MULTILINE]
      fields:
        1: home_team
        2: away_team
  url:
    - pattern: "(https?://\\\\S+)"
      fields: {1: href}
"""


class TestRegexTokens:
    def test_tokens_may_reference_each_other(self) -> None:
        tokens = resolve_regex_tokens({"word": "[a-z]+", "pair": "<word> <word>"})
        assert tokens["pair"] == "[a-z]+ [a-z]+"

    def test_named_groups_are_not_placeholders(self) -> None:
        expanded = expand_regex_tokens("(?P<home><team>)", {"team": "[A-Z]+"})
        assert expanded == "(?P<home>[A-Z]+)"

    def test_unknown_token_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown regex token <nope>"):
            expand_regex_tokens("<nope>", {"team": "x"})

    def test_circular_tokens_raise(self) -> None:
        with pytest.raises(ValueError, match="Circular"):
            resolve_regex_tokens({"a": "<b>", "b": "<a>"})

    def test_no_tokens_leaves_text_untouched(self) -> None:
        assert expand_regex_tokens("<anything>", {}) == "<anything>"


class TestLoadDataSource:
    def test_loads_kits_with_tokens_and_integer_keys(self, tmp_path) -> None:
        data_source = load_data_source(write(tmp_path / "blog.yaml", MINIMAL_DATA_SOURCE))

        assert data_source.id == "blog"
        assert data_source.display_name == "The Blog"
        assert data_source.primary_type == "match"
        assert data_source.enabled

        [match_kit] = data_source.get_pattern_kits_for("match")
        assert match_kit.regex == "^([A-Za-z ]+?) vs ([A-Za-z ]+?)$"
        assert match_kit.pattern.flags & re.MULTILINE
        assert dict(match_kit.fields) == {1: "home_team", 2: "away_team"}

        [url_kit] = data_source.get_pattern_kits_for("url")
        assert url_kit.regex == r"(https?://\S+)"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="File not found"):
            load_data_source(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path) -> None:
        path = write(tmp_path / "broken.yaml", "id: [unclosed\n")
        with pytest.raises(ConfigError, match="Unable to read"):
            load_data_source(path)

    def test_top_level_must_be_mapping(self, tmp_path) -> None:
        path = write(tmp_path / "list.yaml", "- id: blog\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_data_source(path)

    def test_schema_errors_are_reported(self, tmp_path) -> None:
        path = write(tmp_path / "blog.yaml", "id: blog\n")
        with pytest.raises(ConfigError, match="pattern_kits"):
            load_data_source(path)

    def test_bad_regex_is_reported(self) -> None:
        data = {"id": "blog", "pattern_kits": {"match": [{"pattern": "(unclosed", "fields": {1: "home_team"}}]}}
        with pytest.raises(ConfigError, match="Invalid data source"):
            data_source_from_dict(data)

    def test_disabled_flag(self) -> None:
        data = {
            "id": "blog",
            "enabled": False,
            "pattern_kits": {"match": [{"pattern": "(x)", "fields": {1: "home_team"}}]},
        }
        assert data_source_from_dict(data).enabled is False

    def test_load_data_sources_keeps_order(self, tmp_path) -> None:
        first = write(tmp_path / "a.yaml", MINIMAL_DATA_SOURCE)
        second = write(tmp_path / "b.yaml", MINIMAL_DATA_SOURCE.replace("id: blog", "id: other"))
        assert [source.id for source in load_data_sources([first, second])] == ["blog", "other"]


class TestSampleDataSource:
    def test_sample_announcement_extracts(self) -> None:
        data_source = load_data_source(SAMPLES_DIR / "galataman.yaml")
        text = (SAMPLES_DIR / "announcement.txt").read_text(encoding="utf-8")
        orchestrator = ExtractionOrchestrator(EntityMatcher(StrategyChain(build_registry())))

        [match] = list(orchestrator.extract(data_source, text))

        assert match.title == "UEFA Champions League - Real Madrid vs. Manchester City - Semi-Final"
        assert match.fixture is SEMI_FINAL
        assert match.date == dt.date(2022, 5, 4)
        bt_sport, movistar = match.file_sources
        assert bt_sport.channel == "BT Sport"
        assert bt_sport.filesize == FileSize.from_string("4.2 GB")
        assert movistar.channel == "Movistar Liga de Campeones"
        assert movistar.filesize is None
        pack = movistar.video_file_packs[0]
        assert pack.get(PartIdentifier.SECOND_HALF).external_url == "https://files.example.com/movistar/second-half.mkv"


class TestSettings:
    def test_paths_resolved_relative_to_settings_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("MATCHREEL_SOURCES", "sources")
        path = write(
            tmp_path / "settings.yaml",
            """
data_sources:
  - ${MATCHREEL_SOURCES}/blog.yaml
  - /abs/other.yaml
logging:
  level: DEBUG
  file: logs/matchreel.log
""",
        )

        settings = load_settings(path)

        assert settings.data_sources == [tmp_path / "sources" / "blog.yaml", Path("/abs/other.yaml")]
        assert settings.log_level == "DEBUG"
        assert settings.log_file == tmp_path / "logs" / "matchreel.log"

    def test_defaults(self, tmp_path) -> None:
        settings = load_settings(write(tmp_path / "settings.yaml", "{}\n"))
        assert settings == EngineSettings()

    def test_invalid_log_level(self, tmp_path) -> None:
        path = write(tmp_path / "settings.yaml", "logging:\n  level: LOUD\n")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(path)

    def test_handlers_resolve_to_callables(self, tmp_path) -> None:
        path = write(
            tmp_path / "settings.yaml",
            """
handlers:
  - type: matchreel.models:Fixture
    handler: matchreel.handlers:parse_fixture
""",
        )

        assert load_settings(path).resolve_handlers() == [(Fixture, parse_fixture)]

    def test_unknown_handler_raises_config_error(self) -> None:
        spec = HandlerSpec(type="matchreel.models:Fixture", handler="matchreel.handlers:does_not_exist")
        with pytest.raises(ConfigError, match="Cannot load type handler"):
            spec.resolve()

    def test_handler_target_must_be_a_type(self) -> None:
        spec = HandlerSpec(type="matchreel.handlers:parse_fixture", handler="matchreel.handlers:parse_fixture")
        with pytest.raises(ConfigError, match="is not a type"):
            spec.resolve()
