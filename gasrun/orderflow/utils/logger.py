"""Centralized logging configuration for orderflow.

Exposes a single configured logger shared by the API process and the Celery
worker so that compensation steps and request handling log in one format.
"""
from __future__ import annotations

import logging
import os

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _create_logger() -> logging.Logger:
    logger = logging.getLogger("orderflow")
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.setLevel(_LOG_LEVEL)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


logger = _create_logger()
