from __future__ import annotations

import pytest

from matchreel.validation import (
    DATA_SOURCE_SCHEMA,
    ValidationIssue,
    ValidationReport,
    _format_jsonschema_path,
    describe_issue,
    normalize_field_keys,
    validate_data_source_data,
    validate_settings_data,
)


# Fixtures


@pytest.fixture
def valid_data_source():
    """A data source with kits for every assembled type."""
    return {
        "id": "blog",
        "name": "The Blog",
        "regex_tokens": {"team": "[A-Za-z ]+?"},
        "pattern_kits": {
            "match": [{"pattern": "(<team>) vs (<team>)", "fields": {1: "home_team", 2: "away_team"}}],
            "video_file_source": [{"pattern": "Channel: (\\w+)", "fields": {1: "channel"}}],
            "video_file": [{"pattern": "(1st Half|2nd Half):", "fields": {1: "title"}}],
            "url": [{"pattern": "(https?://\\S+)", "fields": {"1": "href"}}],
        },
    }


def codes(issues):
    return [issue.code for issue in issues]


class TestValidationReport:
    def test_empty_report_is_valid(self) -> None:
        report = ValidationReport()
        assert report.is_valid
        assert report.summary() == ""

    def test_warnings_do_not_invalidate(self) -> None:
        report = ValidationReport()
        report.warning("enabled", "Data source is disabled", "disabled")
        assert report.is_valid

    def test_errors_invalidate_and_appear_in_summary(self) -> None:
        report = ValidationReport()
        report.error("pattern_kits", "No pattern kits", "primary-missing")
        assert not report.is_valid
        assert report.summary() == "[primary-missing] pattern_kits: No pattern kits"


class TestFormatPath:
    def test_root(self) -> None:
        assert _format_jsonschema_path([]) == "<root>"

    def test_nested_indices(self) -> None:
        assert _format_jsonschema_path(["pattern_kits", "match", 0, "fields"]) == "pattern_kits.match[0].fields"


class TestNormalizeFieldKeys:
    def test_integer_keys_become_strings(self, valid_data_source) -> None:
        normalized = normalize_field_keys(valid_data_source)
        assert normalized["pattern_kits"]["match"][0]["fields"] == {"1": "home_team", "2": "away_team"}

    def test_input_is_not_modified(self, valid_data_source) -> None:
        normalize_field_keys(valid_data_source)
        assert valid_data_source["pattern_kits"]["match"][0]["fields"] == {1: "home_team", 2: "away_team"}


class TestValidateDataSource:
    def test_valid_data_source(self, valid_data_source) -> None:
        report = validate_data_source_data(valid_data_source)
        assert report.is_valid
        assert report.warnings == []

    def test_schema_requires_pattern_kits(self) -> None:
        report = validate_data_source_data({"id": "blog"})
        assert codes(report.errors) == ["schema"]
        assert "pattern_kits" in report.errors[0].message

    def test_unexpected_top_level_key(self, valid_data_source) -> None:
        valid_data_source["patterns"] = []
        report = validate_data_source_data(valid_data_source)
        assert not report.is_valid

    def test_kit_requires_fields(self, valid_data_source) -> None:
        valid_data_source["pattern_kits"]["url"] = [{"pattern": "(x)"}]
        report = validate_data_source_data(valid_data_source)
        assert report.errors[0].path == "pattern_kits.url[0]"

    def test_missing_primary_kits(self, valid_data_source) -> None:
        valid_data_source["primary_type"] = "highlight"
        report = validate_data_source_data(valid_data_source)
        assert "primary-missing" in codes(report.errors)

    @pytest.mark.parametrize("primary_type", ["video_file_source", "url"])
    def test_assembled_type_cannot_be_primary(self, valid_data_source, primary_type) -> None:
        valid_data_source["primary_type"] = primary_type
        report = validate_data_source_data(valid_data_source)

        assert codes(report.errors) == ["primary-type"]
        assert report.errors[0].path == "primary_type"

    def test_unknown_target_type(self, valid_data_source) -> None:
        valid_data_source["pattern_kits"]["stadium"] = [{"pattern": "(x)", "fields": {1: "name"}}]
        report = validate_data_source_data(valid_data_source)
        assert codes(report.errors) == ["unknown-type"]
        assert report.errors[0].path == "pattern_kits.stadium"

    def test_unknown_field(self, valid_data_source) -> None:
        valid_data_source["pattern_kits"]["url"][0]["fields"] = {1: "label"}
        report = validate_data_source_data(valid_data_source)
        assert codes(report.errors) == ["unknown-field"]
        assert "label" in report.errors[0].message

    def test_bad_group_reference(self, valid_data_source) -> None:
        valid_data_source["pattern_kits"]["url"][0]["fields"] = {2: "href"}
        report = validate_data_source_data(valid_data_source)
        assert codes(report.errors) == ["pattern"]

    def test_unknown_regex_token(self, valid_data_source) -> None:
        valid_data_source["pattern_kits"]["match"][0]["pattern"] = "(<club>) vs (<team>)"
        report = validate_data_source_data(valid_data_source)
        assert codes(report.errors) == ["pattern"]
        assert "<club>" in report.errors[0].message

    def test_circular_regex_tokens(self, valid_data_source) -> None:
        valid_data_source["regex_tokens"] = {"team": "<club>", "club": "<team>"}
        report = validate_data_source_data(valid_data_source)
        assert "regex-token" in codes(report.errors)

    def test_unknown_flag(self, valid_data_source) -> None:
        valid_data_source["pattern_kits"]["url"][0]["flags"] = ["GREEDY"]
        report = validate_data_source_data(valid_data_source)
        assert codes(report.errors) == ["pattern"]

    def test_video_files_without_urls_warns(self, valid_data_source) -> None:
        del valid_data_source["pattern_kits"]["url"]
        report = validate_data_source_data(valid_data_source)
        assert report.is_valid
        assert codes(report.warnings) == ["missing-urls"]

    def test_video_files_without_sources_warns(self, valid_data_source) -> None:
        del valid_data_source["pattern_kits"]["video_file_source"]
        report = validate_data_source_data(valid_data_source)
        assert codes(report.warnings) == ["missing-file-sources"]

    def test_disabled_warns(self, valid_data_source) -> None:
        valid_data_source["enabled"] = False
        report = validate_data_source_data(valid_data_source)
        assert codes(report.warnings) == ["disabled"]

    def test_schema_declares_required_keys(self) -> None:
        assert DATA_SOURCE_SCHEMA["required"] == ["id", "pattern_kits"]


class TestValidateSettings:
    def test_empty_settings_are_valid(self) -> None:
        assert validate_settings_data({}).is_valid

    def test_full_settings(self) -> None:
        report = validate_settings_data(
            {
                "data_sources": ["blog.yaml"],
                "handlers": [{"type": "mypkg.models:Venue", "handler": "mypkg.parsers:parse_venue"}],
                "logging": {"level": "DEBUG", "file": "matchreel.log"},
            }
        )
        assert report.is_valid

    def test_handler_must_be_import_string(self) -> None:
        report = validate_settings_data({"handlers": [{"type": "Venue", "handler": "parse_venue"}]})
        assert not report.is_valid
        assert report.errors[0].path.startswith("handlers[0]")

    def test_unknown_key(self) -> None:
        assert not validate_settings_data({"sources": []}).is_valid


def test_describe_issue_collapses_whitespace() -> None:
    issue = ValidationIssue("error", "id", "bad\n   value", "schema")
    assert describe_issue(issue) == "[schema] id: bad value"
