# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

All log settings (levels, rotation, format …) live in  etc/logging.conf.
This module resolves the log-file path, patches it into the config text, and
applies it via the standard-library fileConfig loader.

Nothing is configured at import time.  The application factory calls
:func:`configure_logging` once and hands the returned logger (or children of
it) to every component that needs one.
"""

import configparser
import logging
import logging.config

from core.config import Settings

LOGGER_NAME = "recordsdesk"


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Apply etc/logging.conf and return the application logger.

    logging.conf uses %(log_file)s as a placeholder.  We read the raw text,
    replace it with the real absolute path, then feed the result to fileConfig
    via a ConfigParser-compatible string.  When the config file is absent the
    root logger is left as it is.
    """
    conf_path = settings.log_config
    if conf_path.is_file():
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = settings.log_dir / "app.log"

        raw = conf_path.read_text(encoding="utf-8")
        raw = raw.replace("%(log_file)s", str(log_file))

        # RawConfigParser is required: the logging format strings contain
        # %(asctime)s etc. which ConfigParser would try to interpolate.
        parser = configparser.RawConfigParser()
        parser.read_string(raw)
        logging.config.fileConfig(parser, disable_existing_loggers=False)

    return logging.getLogger(LOGGER_NAME)
