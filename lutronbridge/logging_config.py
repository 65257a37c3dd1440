#!/usr/bin/env python
# lutronbridge/logging_config.py - Centralized logging configuration
#
# This library is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
"""
Centralized logging configuration for lutronbridge.

The level comes from the LUTROND_VERBOSITY environment variable, so the
daemon, the simulator and ad-hoc scripts all log the same way.
"""

import logging
import os
import sys
from typing import Optional

VERBOSITY_ENV = 'LUTROND_VERBOSITY'

VALID_LOG_LEVELS = {
    'CRITICAL': logging.CRITICAL,
    'ERROR': logging.ERROR,
    'WARNING': logging.WARNING,
    'INFO': logging.INFO,
    'DEBUG': logging.DEBUG
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(logger_name='lutronbridge', default_level='INFO',
                      log_file: Optional[str] = None):
    """
    Configure logging for lutronbridge.

    :param logger_name: Name of the logger to configure (default: 'lutronbridge')
    :param default_level: Level used if LUTROND_VERBOSITY is unset or invalid
    :param log_file: Also write to this file, if given
    :return: Configured logger instance
    """
    verbosity = os.environ.get(VERBOSITY_ENV, default_level).upper()

    if verbosity not in VALID_LOG_LEVELS:
        print(f"Warning: Invalid {VERBOSITY_ENV} '{verbosity}', using '{default_level}'",
              file=sys.stderr)
        verbosity = default_level

    level = VALID_LOG_LEVELS[verbosity]
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # Only add handlers once, configure_logging may be called repeatedly
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file and not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in logger.handlers):
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
