import json
import logging

import pytest
import structlog

from datacore.logging import current_trace_id, get_logger, setup_logging, trace_context


@pytest.fixture
def json_logging(capsys):
    setup_logging(level="INFO", log_format="json")
    try:
        yield capsys
    finally:
        structlog.reset_defaults()
        logging.basicConfig(handlers=[logging.NullHandler()], force=True)


def test_trace_context_binds_and_restores():
    assert current_trace_id() is None
    with trace_context("outer"):
        assert current_trace_id() == "outer"
        with trace_context("inner"):
            assert current_trace_id() == "inner"
        assert current_trace_id() == "outer"
    assert current_trace_id() is None


def test_json_lines_carry_bound_trace_id(json_logging):
    logger = get_logger("datacore.tests")
    with trace_context("t-123", operation="find_many"):
        logger.info("data_operation", result_size=3)

    line = json_logging.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "data_operation"
    assert record["trace_id"] == "t-123"
    assert record["operation"] == "find_many"
    assert record["result_size"] == 3
    assert record["level"] == "info"
    assert "timestamp" in record
