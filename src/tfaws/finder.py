"""
Paginated search helpers.

Every service finder follows the same shape: walk the pages of a listing
call, test each element against a predicate and either stop at the first
match or report that nothing matched. The helpers here implement that once;
service modules only supply the listing call and the predicate.

Two page sources are supported:
- a ``fetch_page(token)`` callback returning a ``Page``, for APIs driven by a
  manual continuation token;
- any iterable of boto3 response dicts, typically a botocore ``PageIterator``
  from ``client.get_paginator(...).paginate(...)``.

Both are consumed lazily, so a match on page i never fetches page i+1.
"""

from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
)

from botocore.exceptions import PaginationError

from .errors import EmptyResultError, NotFoundError, TooManyResultsError
from .types import ContinuationToken, Predicate, RequestDescription, T
from .utils import setup_logging

logger = setup_logging()


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing call. ``items`` may be None for an empty page."""

    items: Optional[Sequence[Optional[T]]]
    next_token: ContinuationToken = None

    @property
    def last_page(self) -> bool:
        # An empty token ends the listing, as in botocore
        return not self.next_token


FetchPage = Callable[[ContinuationToken], Optional[Page]]


def iter_pages(fetch_page: FetchPage) -> Iterator[Page]:
    """
    Yields pages from ``fetch_page`` until one is flagged as the last.

    ``fetch_page`` is called with None first and then with each page's
    continuation token. Errors it raises propagate unchanged.

    Raises:
        PaginationError: If the same continuation token is returned twice
    """
    token: ContinuationToken = None
    seen_tokens = set()
    while True:
        page = fetch_page(token)
        if page is None:
            # Nothing to search and no way to continue
            return
        yield page
        if page.last_page:
            return
        if page.next_token in seen_tokens:
            raise PaginationError(
                message=f"The same next token was received twice: {page.next_token}"
            )
        seen_tokens.add(page.next_token)
        token = page.next_token


def _batches_from_dicts(
    pages: Iterable[Optional[Dict[str, Any]]], result_key: str
) -> Iterator[Optional[Sequence[Any]]]:
    for page in pages:
        yield page.get(result_key) if page else None


def _batches_from_pages(pages: Iterable[Page]) -> Iterator[Optional[Sequence[Any]]]:
    for page in pages:
        yield page.items


def _search(batches: Iterable[Optional[Sequence[Any]]], predicate: Predicate, first_only: bool) -> List[Any]:
    matches = []
    for batch in batches:
        if not batch:
            continue
        for item in batch:
            if item is None:
                continue
            if predicate(item):
                matches.append(item)
                if first_only:
                    return matches
    return matches


def find_first(fetch_page: FetchPage, predicate: Predicate, request: RequestDescription = None) -> Any:
    """
    Returns the first element, in page order, for which ``predicate`` is true.

    Args:
        fetch_page: Callback returning the page for a continuation token
        predicate: Pure function of one element
        request: Description of the listing request, kept on the not-found error

    Raises:
        NotFoundError: If no element on any page matches
    """
    matches = _search(_batches_from_pages(iter_pages(fetch_page)), predicate, first_only=True)
    if not matches:
        raise NotFoundError(last_request=request)
    return matches[0]


def find_first_in_pages(
    pages: Iterable[Optional[Dict[str, Any]]],
    result_key: str,
    predicate: Predicate,
    request: RequestDescription = None,
) -> Any:
    """
    Same as ``find_first`` for an iterable of boto3 response pages.

    Args:
        pages: Response dicts, e.g. a botocore PageIterator
        result_key: Key of the element list in each response, e.g. "QueueUrls"
        predicate: Pure function of one element
        request: Description of the listing request, kept on the not-found error
    """
    matches = _search(_batches_from_dicts(pages, result_key), predicate, first_only=True)
    if not matches:
        raise NotFoundError(last_request=request)
    return matches[0]


def find_all(fetch_page: FetchPage, predicate: Optional[Predicate] = None) -> List[Any]:
    """Returns every matching element across all pages; no predicate matches all."""
    return _search(_batches_from_pages(iter_pages(fetch_page)), predicate or _match_all, first_only=False)


def find_all_in_pages(
    pages: Iterable[Optional[Dict[str, Any]]],
    result_key: str,
    predicate: Optional[Predicate] = None,
) -> List[Any]:
    return _search(_batches_from_dicts(pages, result_key), predicate or _match_all, first_only=False)


def assert_single_value_result(items: Sequence[T], request: RequestDescription = None) -> T:
    """
    Returns the only element of ``items``.

    Raises:
        EmptyResultError: If ``items`` is empty
        TooManyResultsError: If ``items`` holds more than one element
    """
    if not items:
        raise EmptyResultError(last_request=request)
    if len(items) > 1:
        logger.debug(f"Expected a single result, got {len(items)} for {request}")
        raise TooManyResultsError(len(items), last_request=request)
    return items[0]


def _match_all(item: Any) -> bool:
    return True
