"""Tests for webhook template rendering and validation."""

import json
from datetime import UTC, datetime

import pytest

from nebula.services.time_source import TimeSource, format_iso_timestamp
from nebula.services.webhook_templates import (
    DEFAULT_PAYLOAD_TYPE,
    TemplateError,
    WebhookContext,
    build_test_context,
    escape_json_string,
    make_default_payload,
    render_template,
    validate_template,
)


class FixedTimeSource(TimeSource):
    def __init__(self, moment: datetime):
        self.moment = moment

    def current(self) -> datetime:
        return self.moment


def _ctx(**overrides):
    values = {
        "name": "Netflix",
        "price": "15.99",
        "currency": "USD",
        "display_price": "115.50",
        "display_currency": "CNY",
        "days_left": "3",
        "due_date": "2024-06-10",
        "now": "2024-06-07T01:00:00.000Z",
    }
    values.update(overrides)
    return WebhookContext(**values)


class TestRenderTemplate:
    def test_quote_round_trip(self):
        rendered = render_template('{"n":"{{name}}"}', _ctx(name='A"B'))
        assert json.loads(rendered) == {"n": 'A"B'}

    def test_escapes_control_characters(self):
        rendered = render_template('{"n":"{{name}}"}', _ctx(name="a\\b\nc\td\re"))
        assert json.loads(rendered)["n"] == "a\\b\nc\td\re"

    def test_unknown_field_renders_empty(self):
        assert render_template('{"x":"{{nope}}"}', _ctx()) == '{"x":""}'

    def test_whitespace_inside_braces(self):
        assert render_template("{{ name }}-{{currency}}", _ctx()) == "Netflix-USD"

    def test_all_fields(self):
        template = (
            '{"name":"{{name}}","price":"{{price}}","currency":"{{currency}}",'
            '"display":"{{display_price}} {{display_currency}}","days":{{days_left}},'
            '"due":"{{due_date}}","now":"{{now}}"}'
        )
        assert json.loads(render_template(template, _ctx())) == {
            "name": "Netflix",
            "price": "15.99",
            "currency": "USD",
            "display": "115.50 CNY",
            "days": 3,
            "due": "2024-06-10",
            "now": "2024-06-07T01:00:00.000Z",
        }

    def test_escape_json_string(self):
        assert escape_json_string('say "hi"') == 'say \\"hi\\"'


class TestValidateTemplate:
    def test_returns_parsed_payload(self):
        assert validate_template('{"text":"{{name}} due in {{days_left}}d"}', _ctx()) == {
            "text": "Netflix due in 3d"
        }

    def test_invalid_json_raises(self):
        with pytest.raises(TemplateError, match="not valid JSON"):
            validate_template('{"text": {{name}}}', _ctx())

    @pytest.mark.parametrize(
        "template",
        ['{"v": NaN}', '{"v": Infinity}', '{"v": -Infinity}', '{"v": 1e999}'],
    )
    def test_non_finite_numbers_rejected(self, template):
        with pytest.raises(TemplateError, match="not valid JSON"):
            validate_template(template, _ctx())

    def test_finite_numbers_accepted(self):
        assert validate_template('{"v": 1.5e3, "n": {{days_left}}}', _ctx()) == {
            "v": 1500.0,
            "n": 3,
        }

    def test_template_error_is_value_error(self):
        assert issubclass(TemplateError, ValueError)


class TestDefaultPayload:
    def test_shape(self):
        payload = make_default_payload(_ctx())
        assert payload["type"] == DEFAULT_PAYLOAD_TYPE == "nebula.webhook.test"
        assert payload["message"] == "Nebula webhook test for Netflix"
        assert payload["now"] == "2024-06-07T01:00:00.000Z"
        assert payload["subscription"] == {
            "name": "Netflix",
            "price": "15.99",
            "currency": "USD",
            "display_price": "115.50",
            "display_currency": "CNY",
            "days_left": "3",
            "due_date": "2024-06-10",
        }


class TestBuildTestContext:
    def test_uses_local_date(self):
        # 2024-06-07 20:30 UTC is already 2024-06-08 in Shanghai
        clock = FixedTimeSource(datetime(2024, 6, 7, 20, 30, tzinfo=UTC))
        ctx = build_test_context("Asia/Shanghai", "CNY", clock)
        assert ctx.name == "Nebula Test"
        assert ctx.price == "10.00"
        assert ctx.currency == "USD"
        assert ctx.display_currency == "CNY"
        assert ctx.days_left == "0"
        assert ctx.due_date == "2024-06-08"
        assert ctx.now == "2024-06-07T20:30:00.000Z"


class TestTimeSource:
    def test_now_hhmm_in_timezone(self):
        clock = FixedTimeSource(datetime(2024, 6, 7, 1, 2, tzinfo=UTC))
        assert clock.now_hhmm("Asia/Shanghai") == "09:02"
        assert clock.today("America/New_York") == "2024-06-06"

    def test_format_iso_timestamp(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, 678900, tzinfo=UTC)
        assert format_iso_timestamp(moment) == "2024-01-02T03:04:05.678Z"
