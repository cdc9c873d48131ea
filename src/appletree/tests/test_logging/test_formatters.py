import json
import logging
import sys

from appletree.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record(exc_info=None):
    return logging.LogRecord("appletree.repositories", logging.INFO, __file__, 10, "hello %s", ("tester",), exc_info)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.request_id = "req-1"
    rec.operation = "schools.get"
    rec.school_id = 42

    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["logger"] == "appletree.repositories"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["request_id"] == "req-1"
    assert data["operation"] == "schools.get"
    assert data["school_id"] == 42
    assert "timestamp" in data
    assert "version" in data


def test_json_formatter_omits_standard_record_attributes():
    data = json.loads(JsonFormatter().format(make_record()))

    for attr in ("args", "msg", "levelno", "thread", "processName"):
        assert attr not in data
    assert data["service"] == "appletree"
    assert data["request_id"] == "-"


def test_json_formatter_non_serializable_extra():
    class Opaque:
        def __repr__(self):
            return "<Opaque>"

    rec = make_record()
    rec.obj = Opaque()

    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert data["obj"] == "<Opaque>"


def test_json_formatter_includes_exception_text():
    try:
        raise ValueError("boom")
    except ValueError:
        rec = make_record(exc_info=sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: boom" in data["exc_info"]


def test_color_formatter_line_layout():
    rec = make_record()
    rec.request_id = "rid-9"

    line = ColorFormatter().format(rec)

    assert ColorFormatter.COLOR_CODES["INFO"] in line
    assert ColorFormatter.COLOR_CODES["RESET"] in line
    assert "rid-9" in line
    assert line.endswith("hello tester")
