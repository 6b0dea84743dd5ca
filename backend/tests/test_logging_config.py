import json
import logging

from vaultbank.logging_config import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="vaultbank.services.transactions",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Transfer %s created",
        args=("TXN-261017-AB12",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_context_fields():
    entry = json.loads(JSONFormatter().format(_record(user_id="u-1", action="transfer.create")))

    assert entry["level"] == "INFO"
    assert entry["logger"] == "vaultbank.services.transactions"
    assert entry["message"] == "Transfer TXN-261017-AB12 created"
    assert entry["user_id"] == "u-1"
    assert entry["action"] == "transfer.create"
    assert "resource" not in entry


def test_setup_logging_replaces_handlers():
    logger = setup_logging("debug", logger_name="vaultbank.test")
    setup_logging("warning", logger_name="vaultbank.test")

    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JSONFormatter)
    assert logger.level == logging.WARNING
    assert not logger.propagate
