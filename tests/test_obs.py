# SPDX-License-Identifier: Apache-2.0
import logging

from overlaysync.errors import CatalogFetchError, log_error_sink
from overlaysync.obs import configure_logging_from_env, log_overlay_event, redact_url


def test_redact_url_masks_credentials():
    url = "https://gis.example/ImageServer/multiDimensionalInfo?f=json&token=abc123"
    out = redact_url(url)
    assert "abc123" not in out
    assert "f=json" in out
    assert "token=[REDACTED]" in out
    assert redact_url("https://gis.example/ImageServer") == "https://gis.example/ImageServer"


def test_log_error_sink_logs_error(caplog):
    err = CatalogFetchError("catalog endpoint returned HTTP 500", status=500)
    with caplog.at_level(logging.ERROR, logger="overlaysync"):
        log_error_sink(err)
    assert any(
        "CatalogFetchError" in rec.getMessage() and rec.levelno == logging.ERROR
        for rec in caplog.records
    )


def test_configure_logging_from_env(monkeypatch):
    root = logging.getLogger()
    previous = root.level
    try:
        monkeypatch.setenv("OVERLAYSYNC_VERBOSITY", "debug")
        configure_logging_from_env()
        assert root.level == logging.DEBUG
        monkeypatch.setenv("OVERLAYSYNC_VERBOSITY", "quiet")
        configure_logging_from_env()
        assert root.level == logging.ERROR
    finally:
        root.setLevel(previous)


def test_overlay_events_log_at_debug_with_redacted_url(caplog):
    url = "https://gis.example/ImageServer/exportImage?token=abc123&f=image"
    with caplog.at_level(logging.DEBUG, logger="overlaysync.overlay"):
        log_overlay_event("source_tiles", "esri-source", url=url)
    [record] = caplog.records
    assert record.levelno == logging.DEBUG
    assert "source_tiles" in record.getMessage()
    assert "abc123" not in record.getMessage()
