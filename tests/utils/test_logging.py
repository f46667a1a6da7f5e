import contextvars
import logging

import pytest

from emberlite.utils import correlation_scope, redact_params
from emberlite.utils.logging import get_correlation_id, get_logger, set_correlation_id, time_call


def test_correlation_id_round_trip():
    def scenario():
        token = set_correlation_id("test-token")
        return token, get_correlation_id()

    assert contextvars.Context().run(scenario) == ("test-token", "test-token")


def test_correlation_scope_resets_and_nests():
    def scenario():
        with correlation_scope() as outer:
            with correlation_scope() as inner:
                nested = inner
            inside = get_correlation_id()
        with correlation_scope("explicit") as explicit:
            pass
        with correlation_scope() as later:
            pass
        return outer, nested, inside, explicit, later

    outer, nested, inside, explicit, later = contextvars.Context().run(scenario)
    assert nested == outer == inside
    assert explicit == "explicit"
    assert later != outer


def test_loggers_share_package_namespace():
    assert get_logger("adapters.pool").name == "emberlite.adapters.pool"
    assert logging.getLogger("emberlite").handlers


def test_time_call_logs_duration(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit-test", logger, sql="select 1", threshold_ms=0):
        pass
    records = [record for record in caplog.records if record.name == logger.name]
    assert any("unit-test took" in record.message for record in records)
    assert records[-1].levelno == logging.WARNING
    assert records[-1].sql == "select 1"
    assert records[-1].outcome == "ok"


def test_time_call_marks_failures(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with pytest.raises(ValueError):
        with time_call("failing", logger, params=["secret-token"]):
            raise ValueError("boom")
    record = [record for record in caplog.records if record.name == logger.name][-1]
    assert record.outcome == "failed"
    assert record.params == ["***"]


def test_redact_params_masks_secrets():
    assert redact_params(["Ada", "my password is hunter2", 3]) == ["Ada", "***", 3]
    assert redact_params(None) == []
