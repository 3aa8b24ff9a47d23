#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
oc_logging.py
===============================================================================
Logging for export_to_ordercloud runs.

Each run writes one file:

    <log root>/run_YYYYMMDD_HHMMSS.txt      (default root ~/.ordercloud_export/logs)

The file holds every record at the requested level, named by module:

    ordercloud_export.processing              stage start/finish, halts, bucket balance
    ordercloud_export.exporters.<kind>        "Saving <resource>; <ids>" and remote failures
    ordercloud_export.clients.ordercloud      retries, throttling, token refresh (DEBUG)

The console only shows INFO and above, so a DEBUG run keeps the client chatter
in the file. Call setup_logging() once from the CLI; package modules just use
logging.getLogger(__name__).
===============================================================================
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Optional

DEFAULT_LOG_ROOT = os.path.join("~", ".ordercloud_export", "logs")
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def run_log_path(log_root: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Path of the log file for a run started at `now`."""
    root = os.path.expanduser(log_root or DEFAULT_LOG_ROOT)
    ts = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return os.path.join(root, f"run_{ts}.txt")


def setup_logging(level: int = logging.DEBUG, log_root: Optional[str] = None) -> str:
    """
    Replace the root handlers with a per-run file handler and an INFO console
    handler. Returns the log file path.
    """
    log_file = run_log_path(log_root)
    os.makedirs(os.path.dirname(log_file), exist_ok=True)

    root_logger = logging.getLogger()
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)

    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(max(level, logging.INFO))
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # urllib3 stays at INFO or above
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))

    root_logger.info("OrderCloud export log: %s", log_file)
    return log_file


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name if name is not None else __name__)
