"""Webhook payload rendering.

Channel templates are JSON documents with ``{{field}}`` placeholders. Values
are escaped so that a placeholder inside a JSON string literal always yields
a valid string, and the rendered text must parse as JSON.
"""

import json
import math
import re
from dataclasses import asdict, dataclass
from typing import Any

from nebula.services.dates import diff_days
from nebula.services.time_source import TimeSource

# Event type of the default payload, shared by test and scheduled sends
DEFAULT_PAYLOAD_TYPE = "nebula.webhook.test"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")

_JSON_STRING_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
    }
)


class TemplateError(ValueError):
    """Raised when a template does not render to valid JSON."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value


@dataclass(frozen=True)
class WebhookContext:
    """Values available to templates, all pre-formatted as strings."""

    name: str
    price: str
    currency: str
    display_price: str
    display_currency: str
    days_left: str
    due_date: str
    now: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


def escape_json_string(value: str) -> str:
    return value.translate(_JSON_STRING_ESCAPES)


def render_template(template: str, ctx: WebhookContext) -> str:
    """Substitute context fields into a template.

    Unknown placeholders render as the empty string.
    """
    values = ctx.as_dict()

    def _replace(match: re.Match[str]) -> str:
        return escape_json_string(values.get(match.group(1), ""))

    return _PLACEHOLDER_RE.sub(_replace, template)


def validate_template(template: str, ctx: WebhookContext) -> Any:
    """Render a template and parse the result.

    Returns:
        The parsed JSON payload.

    Raises:
        TemplateError: If the rendered text is not valid JSON. NaN, Infinity
            and numbers that overflow a float are rejected too.
    """
    rendered = render_template(template, ctx)
    try:
        return json.loads(
            rendered,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except ValueError as exc:
        raise TemplateError(f"template is not valid JSON after rendering: {exc}") from exc


def build_test_context(
    timezone: str,
    base_currency: str,
    time_source: TimeSource | None = None,
) -> WebhookContext:
    """Build the fixed context used to validate and test channels."""
    clock = time_source or TimeSource()
    today = clock.today(timezone)
    return WebhookContext(
        name="Nebula Test",
        price="10.00",
        currency="USD",
        display_price="10.00",
        display_currency=base_currency,
        days_left=str(diff_days(today, today)),
        due_date=today,
        now=clock.now_iso(),
    )


def make_default_payload(ctx: WebhookContext) -> dict[str, Any]:
    return {
        "type": DEFAULT_PAYLOAD_TYPE,
        "message": f"Nebula webhook test for {ctx.name}",
        "now": ctx.now,
        "subscription": {
            "name": ctx.name,
            "price": ctx.price,
            "currency": ctx.currency,
            "display_price": ctx.display_price,
            "display_currency": ctx.display_currency,
            "days_left": ctx.days_left,
            "due_date": ctx.due_date,
        },
    }
