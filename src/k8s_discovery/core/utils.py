"""Utility functions and decorators."""

import logging.config
import sys
import structlog
import yaml
from pathlib import Path
from typing import Callable, Optional, Tuple, Type, Union
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_incrementing


def retry_with_backoff(
    max_retries: int = 5,
    backoff_seconds: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
):
    """Decorator for retry with linear backoff.

    ``max_retries`` is the total number of attempts; the n-th retry waits
    ``n * backoff_seconds``.
    """
    return retry(
        stop=stop_after_attempt(max(1, max_retries)),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep,
        reraise=True
    )


def setup_logging(config_path: Optional[Union[str, Path]] = None, log_level: str = "WARNING") -> None:
    """Setup structured logging configuration.

    Records go to stderr, stdout is reserved for the discovery output.
    """
    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(
            level=getattr(logging, log_level.upper()),
            stream=sys.stderr,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if config_path else structlog.dev.ConsoleRenderer(colors=False)
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def split_strings(value: Optional[str]) -> list:
    """Split a comma separated string, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def body_snippet(body: Union[str, bytes, None], limit: int = 512) -> str:
    """Shorten a response body for error messages."""
    if not body:
        return ""
    if isinstance(body, bytes):
        body = body.decode('utf-8', errors='replace')
    body = body.strip()
    if len(body) > limit:
        return body[:limit] + "..."
    return body
