"""
Logging Configuration

Console logging plus an optional rotating log file for the drug relevance
pipeline. Modules log through logging.getLogger(__name__); this module only
wires handlers.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from src.drug_relevance.models import LookupTier

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Chatty HTTP/SDK loggers that drown out pipeline messages at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "urllib3")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path; rotated at max_bytes
        max_bytes: Max size per log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def log_pipeline_result(
    diagnosis_code: str,
    condition_name: str,
    tier: LookupTier,
    candidate_count: int,
    result_count: int,
    scored: bool,
    logger: Optional[logging.Logger] = None,
):
    """Log the one-line summary of a completed resolve_drugs run."""
    log = logger or logging.getLogger("src.drug_relevance.pipeline")
    status = "OK" if scored else "UNSCORED"
    log.info(
        f"[DrugPipeline:{diagnosis_code}] [{status}] '{condition_name}' "
        f"tier={tier.value} candidates={candidate_count} results={result_count}"
    )
