"""Tests for correlation IDs, the JSON log formatter and the operation tracer."""

import json
import logging

import pytest

from patient_queue.tracing import (
    OperationTracer, StructuredLogFormatter,
    generate_correlation_id, get_correlation_id, set_correlation_id,
)


def test_correlation_ids_are_unique():
    assert generate_correlation_id() != generate_correlation_id()


def test_set_and_get_correlation_id():
    set_correlation_id("req-1")
    assert get_correlation_id() == "req-1"


def test_structured_formatter_emits_json_with_extras():
    set_correlation_id("req-2")
    record = logging.LogRecord("patient_queue", logging.INFO, __file__, 1, "admitted %s", ("Ann",), None)
    record.queue_number = 4
    record.operation = "admit"

    entry = json.loads(StructuredLogFormatter().format(record))

    assert entry["message"] == "admitted Ann"
    assert entry["correlation_id"] == "req-2"
    assert entry["queue_number"] == 4
    assert entry["operation"] == "admit"
    assert "duration_ms" not in entry


def test_operation_tracer_logs_completion(caplog):
    with caplog.at_level(logging.INFO, logger="patient_queue.tracing"):
        with OperationTracer("remove", queue_number=3) as tracer:
            pass
    assert tracer.duration_ms >= 0
    record = caplog.records[-1]
    assert "completed: remove" in record.getMessage()
    assert record.queue_number == 3
    assert record.levelno == logging.INFO


def test_operation_tracer_logs_failure_and_reraises(caplog):
    with caplog.at_level(logging.INFO, logger="patient_queue.tracing"):
        with pytest.raises(KeyError):
            with OperationTracer("update"):
                raise KeyError("boom")
    record = caplog.records[-1]
    assert "failed (KeyError): update" in record.getMessage()
    assert record.levelno == logging.WARNING


def test_service_operations_are_traced(service, make_patient, caplog):
    with caplog.at_level(logging.INFO, logger="patient_queue.tracing"):
        service.admit_patient(make_patient())
    admitted = [r for r in caplog.records if getattr(r, "operation", None) == "admit"]
    assert admitted[-1].queue_number == 1
    assert admitted[-1].queue_size == 1
