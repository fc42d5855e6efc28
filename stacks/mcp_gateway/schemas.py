"""
stacks/mcp_gateway/schemas.py

OpenAPI schema templates for custom integration targets.

A template lives next to the project as ``schemas/{type}-open-api.json`` and
contains the ``{{BASE_URL}}`` placeholder, replaced with the target's
configured base URL before the document is uploaded to the schema bucket.
"""

from pathlib import Path
from typing import Optional, Union

from stacks.mcp_gateway.errors import MissingSubstitutionValueError, TemplateNotFoundError

BASE_URL_PLACEHOLDER = "{{BASE_URL}}"

DEFAULT_SCHEMAS_DIR = Path(__file__).resolve().parents[2] / "schemas"


def schema_object_key(target_type: str) -> str:
    return f"{target_type}-open-api.json"


class SchemaTemplateProcessor:
    def __init__(self, schemas_dir: Optional[Union[str, Path]] = None):
        self.schemas_dir = Path(schemas_dir) if schemas_dir else DEFAULT_SCHEMAS_DIR

    def template_path(self, target_type: str) -> Path:
        return self.schemas_dir / schema_object_key(target_type)

    def load(self, target_type: str) -> str:
        path = self.template_path(target_type)
        if not path.is_file():
            raise TemplateNotFoundError(str(path))
        return path.read_text(encoding="utf-8")

    @staticmethod
    def substitute(
        text: str,
        value: Optional[str],
        placeholder: str = BASE_URL_PLACEHOLDER,
        template_name: Optional[str] = None,
    ) -> str:
        """Replace every occurrence of ``placeholder`` with ``value``."""
        if not value:
            raise MissingSubstitutionValueError(placeholder, template_name)
        return text.replace(placeholder, value)

    def materialize(self, target_type: str, base_url: Optional[str]) -> str:
        # Value check first: a missing base URL is a config error even when the
        # template is missing too.
        if not base_url:
            raise MissingSubstitutionValueError(BASE_URL_PLACEHOLDER, schema_object_key(target_type))
        return self.substitute(
            self.load(target_type),
            base_url,
            template_name=schema_object_key(target_type),
        )
