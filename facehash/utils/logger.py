"""
Logging utilities for the identity matching engine.

Library modules log through ``logging.getLogger(__name__)``; command-line
tools call :func:`setup_logger` once to attach handlers, and use
:class:`RunLogger` to record parameters and results of an evaluation run.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(
    name: str = "facehash",
    level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure and return a logger.

    Existing handlers on the logger are replaced, so calling this twice
    does not duplicate output.

    Args:
        name: Logger name; "facehash" configures the whole package
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for a timestamped log file; no file if None
        console_output: Whether to output to stdout

    Returns:
        Configured logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        file_handler = logging.FileHandler(log_dir / f"{name}_{timestamp}.log")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class RunLogger:
    """
    Logger for evaluation runs.

    Combines standard Python logging with metric tracking and
    JSON persistence of the run's parameters and results.

    Attributes:
        name: Run name
        log_dir: Directory for log and metrics files
        logger: Python logger instance
        metrics: Dictionary storing run metrics
    """

    def __init__(
        self,
        name: str,
        log_dir: Union[str, Path] = "logs",
        level: str = "INFO",
        file_output: bool = True
    ):
        """
        Initialize the run logger.

        Args:
            name: Name of the run
            log_dir: Directory for log files
            level: Logging level
            file_output: Whether to also write a log file
        """
        self.name = name
        self.log_dir = Path(log_dir)
        self.metrics: Dict[str, Any] = {}
        self.start_time = datetime.now()
        self.logger = setup_logger(
            name,
            level=level,
            log_dir=self.log_dir if file_output else None,
        )

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def log_metric(self, name: str, value: float, step: Optional[int] = None) -> None:
        """
        Log a metric value.

        Args:
            name: Metric name
            value: Metric value
            step: Optional step, e.g. the threshold being evaluated
        """
        entry = {'value': value, 'timestamp': datetime.now().isoformat()}
        if step is not None:
            entry['step'] = step

        self.metrics.setdefault(name, []).append(entry)
        suffix = f" (step {step})" if step is not None else ""
        self.info(f"Metric {name}: {value:.6f}{suffix}")

    def log_params(self, params: Dict[str, Any]) -> None:
        self.metrics['params'] = params
        self.info(f"Parameters: {json.dumps(params, indent=2, default=str)}")

    def log_results(self, results: Dict[str, Any]) -> None:
        """Log final run results."""
        self.metrics['results'] = results
        self.info("Final Results:")
        for key, value in results.items():
            if isinstance(value, float):
                self.info(f"  {key}: {value:.6f}")
            else:
                self.info(f"  {key}: {value}")

    def save_metrics(self, filename: Optional[str] = None) -> Path:
        """
        Save all logged metrics to a JSON file.

        Args:
            filename: Optional custom filename

        Returns:
            Path to the saved metrics file
        """
        if filename is None:
            timestamp = self.start_time.strftime('%Y%m%d_%H%M%S')
            filename = f"{self.name}_{timestamp}_metrics.json"

        self.log_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.log_dir / filename

        output = {
            'run_name': self.name,
            'start_time': self.start_time.isoformat(),
            'end_time': datetime.now().isoformat(),
            'metrics': self.metrics
        }

        with open(filepath, 'w') as f:
            json.dump(output, f, indent=2, default=str)

        self.info(f"Metrics saved to {filepath}")
        return filepath


class ProgressTracker:
    """
    Track progress of a batch of probe images.

    Reports roughly every 5% through the given logger.
    """

    def __init__(self, total: int, logger: Optional[logging.Logger] = None):
        self.total = total
        self.current = 0
        self.start_time = datetime.now()
        self.logger = logger

    def update(self, n: int = 1) -> None:
        self.current += n

        if self.logger and self.current % max(1, self.total // 20) == 0:
            elapsed = (datetime.now() - self.start_time).total_seconds()
            rate = self.current / elapsed if elapsed > 0 else 0
            eta = (self.total - self.current) / rate if rate > 0 else 0

            self.logger.info(
                f"Progress: {self.current}/{self.total} "
                f"({100 * self.current / max(1, self.total):.1f}%) "
                f"ETA: {eta:.1f}s"
            )

    def finish(self) -> float:
        """
        Mark the batch as complete.

        Returns:
            Total elapsed time in seconds
        """
        elapsed = (datetime.now() - self.start_time).total_seconds()
        if self.logger:
            self.logger.info(f"Completed {self.total} items in {elapsed:.2f}s")
        return elapsed
