# tests/test_logging.py
# 日志格式测试

import json
import logging

from kuflow_samples.core.logging import ColoredFormatter, JSONFormatter, temporal_context


def make_record(message="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("kuflow_samples.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


ACTIVITY_CONTEXT = {
    "activity_id": "3",
    "activity_type": "Email_sendMail",
    "attempt": 2,
    "workflow_id": "email-42",
    "workflow_type": "EmailWorkflow",
}


def test_temporal_context_prefers_activity_fields():
    record = make_record(
        temporal_activity=ACTIVITY_CONTEXT,
        temporal_workflow={"workflow_id": "other", "workflow_type": "EmailWorkflow", "run_id": "r1"},
    )

    assert temporal_context(record) == {
        "activity_type": "Email_sendMail",
        "activity_id": "3",
        "workflow_id": "email-42",
        "attempt": 2,
        "workflow_type": "EmailWorkflow",
        "run_id": "r1",
    }


def test_temporal_context_empty_for_plain_records():
    assert temporal_context(make_record()) == {}


def test_json_formatter():
    line = JSONFormatter("worker").format(make_record("sent", temporal_activity=ACTIVITY_CONTEXT))

    data = json.loads(line)
    assert data["service"] == "worker"
    assert data["message"] == "sent"
    assert data["activity_type"] == "Email_sendMail"
    assert data["workflow_id"] == "email-42"


def test_colored_formatter_appends_context():
    line = ColoredFormatter("worker").format(make_record("sent", temporal_activity=ACTIVITY_CONTEXT))

    assert "sent" in line
    assert "Email_sendMail" in line
    assert "wf=email-42" in line
    assert "#2" in line
