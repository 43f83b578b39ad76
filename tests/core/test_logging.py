import logging

from warden.core.cli import parse_cli_flags
from warden.logging import init_logging


def test_init_logging(tmp_path, restore_root_logger):
    location = tmp_path / "logs"
    location.mkdir()
    (location / "previous.log").write_text("old", encoding="utf-8")
    (location / "latest.log").write_text("last run", encoding="utf-8")

    init_logging(logging.DEBUG, location, parse_cli_flags(["--force-disable-rich-logging"]))
    logging.getLogger("warden.test").info("hello")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("discord").level == logging.INFO
    assert (location / "previous.log").read_text(encoding="utf-8") == "last run"
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in (location / "latest.log").read_text(encoding="utf-8")
