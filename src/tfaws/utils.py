"""
Utility functions shared by tfaws modules.
"""

import functools
import logging
from typing import Any, Callable, Optional, TypeVar, cast

from botocore.exceptions import ClientError

from .errors import NotFoundError


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Sets up logging configuration for tfaws.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("tfaws")
    logger.setLevel(getattr(logging, log_level.upper()))

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def error_code(err: BaseException) -> str:
    """Returns the AWS error code of a ClientError, or an empty string."""
    if isinstance(err, ClientError):
        return str(err.response.get("Error", {}).get("Code", ""))
    return ""


def error_code_equals(err: Optional[BaseException], *codes: str) -> bool:
    if err is None:
        return False
    return error_code(err) in codes


F = TypeVar("F", bound=Callable[..., Any])


def finder_error_handler(*codes: str) -> Callable[[F], F]:
    """
    Decorator for finder functions.

    A ClientError whose code is one of ``codes`` is re-raised as a
    NotFoundError carrying the call arguments as the request description.
    Every other error propagates unchanged.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except ClientError as e:
                if not error_code_equals(e, *codes):
                    raise
                setup_logging().debug(f"{func.__name__}: {error_code(e)}")
                request = {"operation": func.__name__, "args": list(args[1:]), **kwargs}
                raise NotFoundError(last_request=request, last_error=e) from e

        return cast(F, wrapper)

    return decorator
