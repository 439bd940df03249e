"""Template rendering for RT configuration documents.

Configuration files are jinja2 templates rendered before HCL decoding, so
one document can serve every environment and AWS account:

    deployment_state "s3" {
      bucket = "rt-state-{{ aws_account_id }}"
      prefix = "{{ environment }}"
      region = "us-east-1"
    }
"""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel, ConfigDict, Field

from rt.lib.errors import ConfigError

_environment = Environment(
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


class TemplateVariables(BaseModel):
    """Variables available to configuration templates."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    environment: str = Field(default="", description="Environment label, e.g. prod")
    aws_account_id: str = Field(default="", description="AWS account identifier")

    def as_context(self) -> dict[str, Any]:
        """Return the template context.

        The CamelCase names are kept for documents written against
        earlier RT releases (``{{ Environment }}``, ``{{ AwsAccountId }}``).
        """
        return {
            "environment": self.environment,
            "aws_account_id": self.aws_account_id,
            "Environment": self.environment,
            "AwsAccountId": self.aws_account_id,
        }


def render_template(text: str, variables: TemplateVariables) -> str:
    """Render a configuration template.

    Args:
        text: Raw template text
        variables: Values substituted into the template

    Returns:
        Rendered text, ready for HCL decoding

    Raises:
        ConfigError: With field ``template`` if parsing or rendering fails
    """
    try:
        return _environment.from_string(text).render(**variables.as_context())
    except TemplateError as e:
        raise ConfigError("template", f"Unable to render template: {e}") from e
