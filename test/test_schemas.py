"""Unit tests for the OpenAPI schema template processor."""

import json

import pytest

from stacks.mcp_gateway.errors import (
    ConfigValidationError,
    MissingSubstitutionValueError,
    TemplateNotFoundError,
)
from stacks.mcp_gateway.schemas import (
    BASE_URL_PLACEHOLDER,
    DEFAULT_SCHEMAS_DIR,
    SchemaTemplateProcessor,
    schema_object_key,
)


class TestSubstitute:
    def test_replaces_every_occurrence(self):
        text = "{{BASE_URL}}/a {{BASE_URL}}/b"
        assert SchemaTemplateProcessor.substitute(text, "https://x") == "https://x/a https://x/b"

    def test_text_without_placeholder_unchanged(self):
        assert SchemaTemplateProcessor.substitute("no placeholders", "https://x") == "no placeholders"

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_value(self, value):
        with pytest.raises(MissingSubstitutionValueError) as exc_info:
            SchemaTemplateProcessor.substitute("{{BASE_URL}}", value, template_name="jira-open-api.json")
        assert exc_info.value.placeholder == BASE_URL_PLACEHOLDER
        assert exc_info.value.template_name == "jira-open-api.json"

    def test_missing_value_is_config_error(self):
        with pytest.raises(ConfigValidationError):
            SchemaTemplateProcessor.substitute("{{BASE_URL}}", None)


class TestMaterialize:
    def test_materialize(self, schemas_dir):
        processor = SchemaTemplateProcessor(schemas_dir)
        document = processor.materialize("jira", "https://example.atlassian.net")
        assert BASE_URL_PLACEHOLDER not in document
        assert json.loads(document)["servers"][0]["url"] == "https://example.atlassian.net/rest/api/3"

    def test_template_not_found(self, tmp_path):
        processor = SchemaTemplateProcessor(tmp_path)
        with pytest.raises(TemplateNotFoundError) as exc_info:
            processor.materialize("github", "https://api.github.com")
        assert exc_info.value.path == str(tmp_path / "github-open-api.json")

    def test_missing_base_url_checked_before_template(self, tmp_path):
        processor = SchemaTemplateProcessor(tmp_path)
        with pytest.raises(MissingSubstitutionValueError):
            processor.materialize("github", None)

    def test_object_key(self):
        assert schema_object_key("jira") == "jira-open-api.json"


class TestBundledSchemas:
    def test_jira_template_ships_with_project(self):
        processor = SchemaTemplateProcessor()
        assert processor.schemas_dir == DEFAULT_SCHEMAS_DIR
        assert BASE_URL_PLACEHOLDER in processor.load("jira")

    def test_jira_template_materializes_to_valid_json(self):
        document = SchemaTemplateProcessor().materialize("jira", "https://example.atlassian.net")
        parsed = json.loads(document)
        assert parsed["openapi"].startswith("3.")
        assert BASE_URL_PLACEHOLDER not in document
