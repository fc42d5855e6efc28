"""
stacks/mcp_gateway/errors.py

Error taxonomy for the MCP gateway stack.

Validation errors are raised at synth time, before any construct is added to
the stack. ControlPlaneError is only raised by the boto3 inspection helpers;
failures during a deployment are reported by CloudFormation itself.
"""

from typing import Optional

from botocore.exceptions import ClientError


class McpGatewayError(Exception):
    """Base class for every error raised by this project."""


class ConfigValidationError(McpGatewayError):
    """A required configuration value is missing or invalid."""


class MissingSubstitutionValueError(ConfigValidationError):
    """A schema template needs a substitution value that was not configured."""

    def __init__(self, placeholder: str, template_name: Optional[str] = None):
        self.placeholder = placeholder
        self.template_name = template_name
        where = f" for template '{template_name}'" if template_name else ""
        super().__init__(f"No value configured for placeholder {placeholder}{where}")


class TemplateNotFoundError(McpGatewayError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Schema template not found: {path}")


class MalformedLocationError(McpGatewayError):
    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Invalid S3 URI format: {uri} (expected s3://bucket/key)")


class ControlPlaneError(McpGatewayError):
    """
    A bedrock-agentcore-control call was rejected.

    The original ClientError is kept as ``original`` and chained as the
    exception cause, so callers see the service fault unchanged.
    """

    def __init__(self, operation: str, original: ClientError):
        self.operation = operation
        self.original = original
        error = original.response.get("Error", {})
        self.code: str = error.get("Code", "Unknown")
        self.message: str = error.get("Message", str(original))
        super().__init__(f"{operation} failed: {self.code}: {self.message}")
