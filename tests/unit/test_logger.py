"""Тесты структурированного логирования."""

import json
import logging

from core.logging.logger import JSONFormatter, StructuredLogger


def test_context_kwargs_become_record_attributes(caplog):
    logger = StructuredLogger("dalal.test")
    with caplog.at_level(logging.INFO, logger="dalal.test"):
        logger.info("Аванс создан", advance_id="a1", amount=500.0, note=None)

    record = caplog.records[-1]
    assert record.getMessage() == "Аванс создан"
    assert record.advance_id == "a1"
    assert record.amount == 500.0
    assert not hasattr(record, "note")


def test_reserved_names_are_prefixed(caplog):
    logger = StructuredLogger("dalal.test")
    with caplog.at_level(logging.WARNING, logger="dalal.test"):
        logger.warning("Import row rejected", module="imports", name="payroll")

    record = caplog.records[-1]
    assert record.ctx_module == "imports"
    assert record.ctx_name == "payroll"
    assert record.module != "imports"


def test_exception_includes_traceback(caplog):
    logger = StructuredLogger("dalal.test")
    with caplog.at_level(logging.ERROR, logger="dalal.test"):
        try:
            raise ValueError("boom")
        except ValueError:
            logger.exception("Failed")

    assert caplog.records[-1].exc_info is not None


def test_json_formatter_outputs_context():
    record = logging.makeLogRecord({
        "name": "dalal",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": "Payroll reconciled",
        "employee_id": "e1",
        "updated": 2,
    })

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Payroll reconciled"
    assert data["level"] == "INFO"
    assert data["employee_id"] == "e1"
    assert data["updated"] == 2
    assert "exception" not in data
