import logging
import logging.handlers
from pathlib import Path
import traceback
from datetime import datetime

from stock_forecast.config import config

class Logger:
    """Logging manager for the Stock Forecast system."""

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the logger if not already initialized."""
        if self._initialized:
            return

        self._log_config = config.log_config
        self._log_dir = Path(self._log_config['directory'])

        if self._log_config['file_output'] and not self._log_dir.exists():
            self._log_dir.mkdir(parents=True)

        self._initialized = True

    def _level(self):
        level_name = self._log_config['level'].upper()
        return getattr(logging, level_name, logging.INFO)

    def get_logger(self, name):
        """Get a logger with the specified name.

        Loggers live under the ``stock_forecast`` namespace so the library
        never touches the root logger of a host application.

        Args:
            name: Name of the logger

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(f"stock_forecast.{name}")
        logger.setLevel(self._level())

        # Remove existing handlers to prevent duplicates
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        formatter = logging.Formatter(self._log_config['format'])

        if self._log_config['file_output']:
            log_file = self._log_dir / f"{name}.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
                backupCount=self._log_config['backup_count']
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        if self._log_config['console_output']:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        # Prevent propagation to root logger to avoid duplicates
        logger.propagate = False

        self._loggers[name] = logger
        return logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to include
        """
        logger = self.get_logger(logger_name)

        if message:
            logger.error(f"{message}: {str(exception)}")
        else:
            logger.error(str(exception))

        logger.error(traceback.format_exc())

    def job_start_log(self, job_name, additional_info=None):
        """Log the start of a forecasting job.

        Args:
            job_name: Name of the job
            additional_info: Optional additional information

        Returns:
            Dictionary with job logging information
        """
        job_logger = self.get_logger('jobs')
        start_time = datetime.now()

        log_info = {
            'job_name': job_name,
            'start_time': start_time,
            'additional_info': additional_info
        }

        job_logger.info(f"Starting job: {job_name}")
        if additional_info:
            job_logger.info(f"Job info: {additional_info}")

        return log_info

    def job_end_log(self, log_info, success=True, result_info=None):
        """Log the end of a forecasting job.

        Args:
            log_info: Dictionary returned by job_start_log
            success: Whether the job succeeded
            result_info: Optional result information
        """
        job_logger = self.get_logger('jobs')
        end_time = datetime.now()

        job_name = log_info.get('job_name', 'Unknown')
        start_time = log_info.get('start_time', end_time)
        duration = end_time - start_time

        if success:
            job_logger.info(f"Completed job: {job_name}")
        else:
            job_logger.error(f"Failed job: {job_name}")

        job_logger.info(f"Job duration: {duration}")

        if result_info:
            job_logger.info(f"Job results: {result_info}")

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)
