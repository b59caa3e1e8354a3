"""Tests for per-job loguru configuration."""

from loguru import logger

from whale_tracker.utils.logger import setup_logger


def test_job_log_file_and_console_tag(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    setup_logger("ingest", log_dir=str(tmp_path))
    try:
        logger.debug("[INGEST] debug goes to file only")
        logger.info("[INGEST] Snapshot 7 stored")
    finally:
        logger.remove()

    files = list(tmp_path.glob("ingest_*.log"))
    assert len(files) == 1
    content = files[0].read_text()
    assert "debug goes to file only" in content
    assert "Snapshot 7 stored" in content

    out = capsys.readouterr().out
    assert "ingest" in out
    assert "Snapshot 7 stored" in out
    assert "debug goes to file only" not in out
