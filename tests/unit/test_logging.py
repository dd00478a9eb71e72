"""Tests for loguru sink configuration."""

from loguru import logger

from vipledger.config.logging import setup_logging


def test_setup_logging_writes_file_sink(tmp_path):
    log_file = tmp_path / "vipledger.log"

    setup_logging(str(log_file))
    logger.info("ledger ready")
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "Logging configured" in content
    assert "ledger ready" in content
