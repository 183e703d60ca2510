import json
import logging
import sys

from common_repository.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    # create a LogRecord that simulates formatting with args
    return logging.LogRecord("common_repository", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    # attach extras (simulate extra={...})
    rec.model = "User"
    rec.operation = "create"
    fmt = JsonFormatter(env="testing", service="svc")

    data = json.loads(fmt.format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert "timestamp" in data
    assert "version" in data
    assert data["model"] == "User"
    assert data["operation"] == "create"
    # standard LogRecord attributes are not repeated as extras
    assert "args" not in data
    assert "msg" not in data


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()
    data = json.loads(JsonFormatter(env="dev", service="svc").format(rec))
    assert data["obj"] == "<X>"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        rec = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: boom" in data["exc_info"]
    assert data["service"] == "common-repository"


def test_color_formatter_appends_extras():
    rec = make_record()
    rec.model = "User"

    line = ColorFormatter().format(rec)

    assert "hello tester" in line
    assert "model=User" in line
    assert ColorFormatter.COLOR_CODES["INFO"] in line


def test_color_formatter_honors_fmt():
    rec = make_record()
    rec.model = "User"

    line = ColorFormatter(fmt="%(name)s :: %(levelname)s :: %(message)s").format(rec)

    reset = ColorFormatter.COLOR_CODES["RESET"]
    assert line.startswith(f"common_repository :: {ColorFormatter.COLOR_CODES['INFO']}INFO")
    assert line.endswith(f"{reset} :: hello tester [model=User]")


def test_color_formatter_does_not_mutate_the_record():
    rec = make_record()

    ColorFormatter().format(rec)

    # other handlers format the same record
    assert rec.levelname == "INFO"
