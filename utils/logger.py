"""
Logger Utility - Configures application-wide logging
Logs to both file and console with rotation
"""

import os
import logging
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from config.settings import config

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
VISIT_LOGGER = 'visits'


def _daily_handler(filename, level, fmt):
    """File handler under LOG_FILE_PATH that rolls over at midnight"""
    handler = TimedRotatingFileHandler(
        os.path.join(config.LOG_FILE_PATH, filename),
        when='midnight',
        interval=1,
        backupCount=config.LOG_RETENTION_DAYS
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _reset(logger):
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def setup_logging():
    """
    Setup application logging with file rotation

    Log files under LOG_FILE_PATH:
    - system.log: everything from DEBUG up, rotated at 10 MB
    - visits.log: one line per visit a student marks
    - errors.log: warnings and errors with their source line

    Safe to call again (each app created in tests calls it); handlers from
    the previous call are closed first.
    """
    os.makedirs(config.LOG_FILE_PATH, exist_ok=True)

    root_logger = logging.getLogger()
    _reset(root_logger)
    root_logger.setLevel(getattr(logging, config.LOG_LEVEL.upper()))

    # Console only shows WARNING and above
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
    root_logger.addHandler(console_handler)

    system_handler = RotatingFileHandler(
        os.path.join(config.LOG_FILE_PATH, 'system.log'),
        maxBytes=10*1024*1024,  # 10 MB
        backupCount=5
    )
    system_handler.setLevel(logging.DEBUG)
    system_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    root_logger.addHandler(system_handler)

    root_logger.addHandler(_daily_handler(
        'errors.log',
        logging.WARNING,
        DETAILED_FORMAT + ' - %(pathname)s:%(lineno)d'
    ))

    visit_logger = logging.getLogger(VISIT_LOGGER)
    _reset(visit_logger)
    visit_logger.setLevel(logging.INFO)
    visit_logger.addHandler(_daily_handler('visits.log', logging.INFO, '%(asctime)s - %(message)s'))

    logging.info("Logging system initialized")


def get_logger(name):
    """Logger for a module, usually called with __name__"""
    return logging.getLogger(name)


def log_visit(student_id, mess_id, status):
    """
    Append a visit attempt to visits.log

    Args:
        student_id: Profile ID of the student
        mess_id: Mess ID as requested
        status: One of the config.VISIT_* values
    """
    logging.getLogger(VISIT_LOGGER).info(f"Student: {student_id} | Mess: {mess_id} | Status: {status}")
