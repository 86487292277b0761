import json
import logging

from fastapi.testclient import TestClient

from ok_target.main import create_app
from ok_target.config import Settings
from ok_target.observability import (
    AccessLogMiddleware,
    ClientFilter,
    JsonLineFormatter,
    setup_json_logging,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_setup_json_logging_is_idempotent():
    a = setup_json_logging("ok_target.test_idempotent", "info")
    b = setup_json_logging("ok_target.test_idempotent", "error")
    assert a is b
    assert len(a.handlers) == 1
    assert a.level == logging.ERROR
    assert a.propagate is False


def test_client_filter_fills_missing_attribute():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert ClientFilter().filter(record)
    assert record.client == "-"


def test_access_middleware_logs_one_line_per_request():
    logger = logging.getLogger("ok_target.test_access")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    handler = _ListHandler()
    logger.addHandler(handler)

    app = create_app(Settings())
    app.add_middleware(AccessLogMiddleware, logger=logger)
    client = TestClient(app)

    r = client.request("DELETE", "/thing/1")
    assert r.status_code == 200

    assert len(handler.records) == 1
    line = handler.records[0].getMessage()
    assert 'method="DELETE"' in line
    assert 'path="/thing/1"' in line
    assert "status=200" in line
    assert handler.records[0].client == "testclient"


def test_json_line_escapes_quotes_in_message():
    record = logging.LogRecord(
        "ok_target", logging.ERROR, __file__, 1, 'bind_failed host="%s" port=%d', ("127.0.0.1", 3000), None
    )
    record.client = "-"
    parsed = json.loads(JsonLineFormatter().format(record))
    assert parsed["msg"] == 'bind_failed host="127.0.0.1" port=3000'
    assert parsed["level"] == "ERROR"
    assert parsed["client"] == "-"
    assert "ts" in parsed
