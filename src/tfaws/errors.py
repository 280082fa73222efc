"""
Error types for tfaws.

NotFoundError distinguishes "nothing matched" from "the call failed". Read
paths use ``is_not_found`` to decide between dropping local state and
surfacing the error to the user.
"""

from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

# AWS error codes meaning the target of a request does not exist
NOT_FOUND_ERROR_CODES = frozenset(
    {
        "ResourceNotFoundException",
        "ResourceNotFound",
        "NotFoundException",
        "NotFound",
        "NoSuchEntity",
        "NoSuchBucket",
        "AWS.SimpleQueueService.NonExistentQueue",
        "QueueDoesNotExist",
        "LoadBalancerNotFound",
        "TargetGroupNotFound",
    }
)


class NotFoundError(Exception):
    """
    A search or lookup found nothing.

    Attributes:
        message: Human readable description, may be empty
        last_request: Description of the request that found nothing
        last_error: SDK error reporting that the target does not exist, if any
    """

    def __init__(
        self,
        message: str = "",
        last_request: Optional[Dict[str, Any]] = None,
        last_error: Optional[BaseException] = None,
    ) -> None:
        self.message = message
        self.last_request = last_request
        self.last_error = last_error
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.message:
            return self.message
        if self.last_error is not None:
            return str(self.last_error)
        return "couldn't find resource"


class EmptyResultError(NotFoundError):
    """A lookup returned no result at all."""

    def __init__(self, last_request: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("empty result", last_request=last_request)


class TooManyResultsError(NotFoundError):
    """A lookup expected exactly one result and got several."""

    def __init__(self, count: int, last_request: Optional[Dict[str, Any]] = None) -> None:
        self.count = count
        super().__init__(f"too many results: wanted 1, got {count}", last_request=last_request)


class TagUpdateError(Exception):
    """Adding or removing tags on a resource failed."""


class ResourceOperationError(Exception):
    """A resource lifecycle operation failed for a reason other than absence."""


class UnknownResourceTypeError(KeyError):
    """No resource or data source is registered under the requested type name."""


def is_not_found(err: Optional[BaseException]) -> bool:
    """
    Returns True if ``err`` signals absence rather than failure.

    Matches NotFoundError (including its subclasses), SDK errors whose code
    says the target does not exist, and either of those anywhere in the
    ``__cause__`` chain of a wrapping error.
    """
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if isinstance(err, NotFoundError):
            return True
        if isinstance(err, ClientError):
            if err.response.get("Error", {}).get("Code", "") in NOT_FOUND_ERROR_CODES:
                return True
        err = err.__cause__
    return False
