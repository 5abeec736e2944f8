"""
Unit tests for core.logger module.

Tests:
- Logger naming and bound context
- Structured key=value extra on emitted records
- render_value() and format_kv_pairs() escaping and truncation
- StructuredFormatter and JsonFormatter output shape
"""

from __future__ import annotations

import json
import logging
import sys

import pytest

from followgraph.core.logger import (
    JsonFormatter,
    Logger,
    StructuredFormatter,
    format_kv_pairs,
    render_value,
)
from followgraph.models.relay import Relay


def _record(msg: str = "done", level: int = logging.INFO, **kv: object) -> logging.LogRecord:
    record = logging.LogRecord("followgraph.x", level, __file__, 1, msg, None, None)
    if kv:
        record.structured_kv = kv
    return record


class TestInit:
    """Logger naming and context."""

    def test_name_prefixed(self) -> None:
        assert Logger("fanout").name == "followgraph.fanout"

    def test_prefixed_name_kept(self) -> None:
        assert Logger("followgraph.fanout").name == "followgraph.fanout"

    def test_context_is_copy(self) -> None:
        logger = Logger("unit", viewer="abc")
        logger.context["viewer"] = "changed"
        assert logger.context == {"viewer": "abc"}

    def test_bind_merges(self) -> None:
        base = Logger("unit", viewer="abc")
        bound = base.bind(window_days=7)
        assert bound.name == base.name
        assert bound.context == {"viewer": "abc", "window_days": 7}
        assert base.context == {"viewer": "abc"}

    def test_bind_overrides(self) -> None:
        assert Logger("unit", a=1).bind(a=2).context == {"a": 2}


class TestRenderValue:
    """Context value rendering."""

    def test_scalar(self) -> None:
        assert render_value(3) == "3"
        assert render_value(None) == "None"

    def test_relays_comma_joined(self) -> None:
        relays = (Relay("wss://a.example"), Relay("wss://b.example"))
        assert render_value(relays) == f"{relays[0].url},{relays[1].url}"

    def test_empty_sequence(self) -> None:
        assert render_value([]) == ""


class TestFormatKvPairs:
    """Key-value pairs formatting and escaping."""

    def test_simple(self) -> None:
        assert format_kv_pairs({"key": "hello"}) == " key=hello"
        assert format_kv_pairs({"key": 123}) == " key=123"

    def test_with_spaces(self) -> None:
        assert format_kv_pairs({"key": "hello world"}) == ' key="hello world"'

    def test_with_equals(self) -> None:
        assert format_kv_pairs({"key": "foo=bar"}) == ' key="foo=bar"'

    def test_with_double_quotes(self) -> None:
        assert format_kv_pairs({"key": 'say "hi"'}) == ' key="say \\"hi\\""'

    def test_empty_value(self) -> None:
        assert format_kv_pairs({"key": ""}) == ' key=""'

    def test_empty_dict(self) -> None:
        assert format_kv_pairs({}) == ""

    def test_list_value(self) -> None:
        assert format_kv_pairs({"kinds": [0, 3]}) == " kinds=0,3"

    def test_truncation(self) -> None:
        result = format_kv_pairs({"key": "x" * 1500}, max_value_length=1000)
        assert result.endswith("...<truncated 500 chars>")

    def test_truncation_disabled(self) -> None:
        assert format_kv_pairs({"key": "x" * 1500}, max_value_length=None) == " key=" + "x" * 1500

    def test_custom_prefix(self) -> None:
        assert format_kv_pairs({"a": 1, "b": 2}, prefix="") == "a=1 b=2"


class TestLogging:
    """Emission through the stdlib logger."""

    def test_structured_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        """Keyword arguments travel in the structured_kv extra."""
        logger = Logger("unit")
        with caplog.at_level(logging.INFO, logger="followgraph.unit"):
            logger.info("query_completed", relays=4, events=37)

        record = caplog.records[-1]
        assert record.getMessage() == "query_completed"
        assert record.structured_kv == {"relays": 4, "events": 37}

    def test_bound_context_attached(self, caplog: pytest.LogCaptureFixture) -> None:
        """Bound context is merged under call kwargs."""
        logger = Logger("unit").bind(viewer="abc", stage="fetch")
        with caplog.at_level(logging.WARNING, logger="followgraph.unit"):
            logger.warning("scoring_fetch_failed", stage="tally", error="boom")

        assert caplog.records[-1].structured_kv == {
            "viewer": "abc",
            "stage": "tally",
            "error": "boom",
        }

    def test_exception_carries_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = Logger("unit")
        with caplog.at_level(logging.ERROR, logger="followgraph.unit"):
            try:
                raise ValueError("bad")
            except ValueError:
                logger.exception("operation_failed")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
        assert record.exc_info[0] is ValueError

    def test_disabled_level_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Messages below the logger level are not emitted."""
        logger = Logger("quiet")
        with caplog.at_level(logging.WARNING, logger="followgraph.quiet"):
            logger.debug("noise", x=1)
        assert not [r for r in caplog.records if r.name == "followgraph.quiet"]


class TestStructuredFormatter:
    """StructuredFormatter output."""

    def test_format_with_kv(self) -> None:
        record = _record(count=2, note="a b")
        assert StructuredFormatter().format(record) == 'info followgraph.x done count=2 note="a b"'

    def test_format_plain(self) -> None:
        record = logging.LogRecord(
            "followgraph.nips.zaps", logging.DEBUG, __file__, 1, "zap x=%s", ("1",), None
        )
        assert StructuredFormatter().format(record) == "debug followgraph.nips.zaps zap x=1"

    def test_format_exception(self) -> None:
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            record = _record("failed", logging.ERROR)
            record.exc_info = sys.exc_info()
        output = StructuredFormatter().format(record)
        assert output.startswith("error followgraph.x failed\n")
        assert "RuntimeError: kaput" in output


class TestJsonFormatter:
    """JsonFormatter output."""

    def test_fixed_keys(self) -> None:
        data = json.loads(JsonFormatter().format(_record("publish_failed", logging.WARNING)))
        assert data["message"] == "publish_failed"
        assert data["level"] == "warning"
        assert data["logger"] == "followgraph.x"
        assert "timestamp" in data
        assert "exception" not in data

    def test_value_types(self) -> None:
        relay = Relay("wss://a.example")
        record = _record(relays=(relay,), count=3, ratio=0.5, ok=True, missing=None, obj=relay)
        data = json.loads(JsonFormatter().format(record))
        assert data["relays"] == [relay.url]
        assert data["count"] == 3
        assert data["ratio"] == 0.5
        assert data["ok"] is True
        assert data["missing"] is None
        assert data["obj"] == relay.url

    def test_single_line(self) -> None:
        assert "\n" not in JsonFormatter().format(_record(note="multi\nline"))

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            record = _record("failed", logging.ERROR)
            record.exc_info = sys.exc_info()
        data = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: kaput" in data["exception"]
