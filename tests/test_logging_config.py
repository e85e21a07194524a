"""Tests for logger naming and the thread context filter."""

import logging
import threading

from logging_config import (
    ThreadContextFilter,
    get_logger,
    get_upload_logger,
    set_thread_name,
    setup_logging,
)


def test_module_loggers_share_namespace():
    assert get_logger("services.cache_store").name == "piso_print.services.cache_store"
    assert get_logger("piso_print.routes").name == "piso_print.routes"


def test_upload_logger_uses_timestamp_prefix():
    assert get_upload_logger("1733221530123-report").name == "piso_print.upload.1733221530123"
    assert get_upload_logger("short").name == "piso_print.upload.short"


def test_thread_name_is_added_to_records():
    seen = {}

    def worker():
        set_thread_name("Convert-legal")
        record = logging.LogRecord("piso_print", logging.INFO, __file__, 1, "msg", None, None)
        ThreadContextFilter().filter(record)
        seen["name"] = record.thread_name

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()

    assert seen["name"] == "Convert-legal"


def test_setup_logging_can_be_repeated(tmp_path):
    setup_logging(log_dir=tmp_path, enable_file_logging=True)
    logger = setup_logging(log_dir=tmp_path, enable_file_logging=False)

    assert len(logger.handlers) == 1
    assert (tmp_path / "piso_print.log").exists()
