"""
Unit tests for the paginated search helpers.
"""

import unittest
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError, PaginationError

from tfaws.errors import EmptyResultError, NotFoundError, TooManyResultsError, is_not_found
from tfaws.finder import (
    Page,
    assert_single_value_result,
    find_all,
    find_all_in_pages,
    find_first,
    find_first_in_pages,
    iter_pages,
)


class RecordingFetcher:
    """Serves a fixed list of pages and records the tokens it was called with."""

    def __init__(self, batches: List[Optional[List[Any]]]) -> None:
        self.batches = batches
        self.calls: List[Optional[str]] = []

    def __call__(self, token: Optional[str]) -> Page:
        self.calls.append(token)
        index = 0 if token is None else int(token)
        next_token = str(index + 1) if index + 1 < len(self.batches) else None
        return Page(items=self.batches[index], next_token=next_token)


class TestFindFirst(unittest.TestCase):
    """Tests for find_first over a page-fetch callback."""

    def test_no_match_visits_every_page_once_in_order(self) -> None:
        """A predicate that never matches reads each page exactly once, then reports not-found."""
        fetcher = RecordingFetcher([[1, 2], [3], [4, 5]])
        with self.assertRaises(NotFoundError):
            find_first(fetcher, lambda item: item > 100)
        self.assertEqual(fetcher.calls, [None, "1", "2"])

    def test_match_stops_before_next_page(self) -> None:
        """A match on page 1 returns without fetching page 2."""
        fetcher = RecordingFetcher([[1, 2], [3, 4], [5]])
        self.assertEqual(find_first(fetcher, lambda item: item == 3), 3)
        self.assertEqual(fetcher.calls, [None, "1"])

    def test_returns_first_match_in_page_order(self) -> None:
        fetcher = RecordingFetcher([[1, 2], [4, 6]])
        self.assertEqual(find_first(fetcher, lambda item: item % 2 == 0), 2)

    def test_empty_and_nil_pages_do_not_abort_search(self) -> None:
        """Empty or missing item lists are skipped and the search continues."""
        fetcher = RecordingFetcher([[1], None, [], [7]])
        self.assertEqual(find_first(fetcher, lambda item: item == 7), 7)
        self.assertEqual(len(fetcher.calls), 4)

    def test_nil_elements_are_skipped(self) -> None:
        """The predicate never sees None elements."""
        seen = []

        def predicate(item: Any) -> bool:
            seen.append(item)
            return item == "b"

        fetcher = RecordingFetcher([[None, "a"], [None, "b"]])
        self.assertEqual(find_first(fetcher, predicate), "b")
        self.assertNotIn(None, seen)

    def test_not_found_carries_request(self) -> None:
        request = {"operation": "ListThings", "name": "x"}
        with self.assertRaises(NotFoundError) as context:
            find_first(RecordingFetcher([[]]), lambda item: True, request=request)
        self.assertEqual(context.exception.last_request, request)
        self.assertTrue(is_not_found(context.exception))

    def test_fetch_error_propagates_unchanged(self) -> None:
        """SDK errors from the listing call surface as-is, with no retry."""
        error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow down"}}, "ListThings")
        calls = []

        def fetch_page(token: Optional[str]) -> Page:
            calls.append(token)
            if token is None:
                return Page(items=[1], next_token="next")
            raise error

        with self.assertRaises(ClientError) as context:
            find_first(fetch_page, lambda item: item == 2)
        self.assertIs(context.exception, error)
        self.assertFalse(is_not_found(context.exception))
        self.assertEqual(calls, [None, "next"])

    def test_empty_token_is_last_page(self) -> None:
        """An empty continuation token ends the listing instead of restarting it."""
        calls = []

        def fetch_page(token: Optional[str]) -> Page:
            calls.append(token)
            return Page(items=["a"], next_token="")

        with self.assertRaises(NotFoundError):
            find_first(fetch_page, lambda item: item == "z")
        self.assertEqual(calls, [None])
        self.assertTrue(Page(items=[], next_token="").last_page)

    def test_repeated_token_raises_pagination_error(self) -> None:
        def fetch_page(token: Optional[str]) -> Page:
            return Page(items=[], next_token="same")

        with self.assertRaises(PaginationError):
            find_first(fetch_page, lambda item: True)


class TestIterPages(unittest.TestCase):
    def test_stops_after_last_page(self) -> None:
        fetcher = RecordingFetcher([[1], [2]])
        pages = list(iter_pages(fetcher))
        self.assertEqual([p.items for p in pages], [[1], [2]])
        self.assertTrue(pages[-1].last_page)

    def test_none_page_ends_iteration(self) -> None:
        self.assertEqual(list(iter_pages(lambda token: None)), [])


class TestFindInPages(unittest.TestCase):
    """Tests for the boto3 response-page variants."""

    def test_short_circuits_lazy_page_iterator(self) -> None:
        """Pages after the matching one are never pulled from the iterator."""
        consumed = []

        def pages() -> Any:
            for index, page in enumerate([{"Items": ["a"]}, {"Items": ["b"]}, {"Items": ["c"]}]):
                consumed.append(index)
                yield page

        self.assertEqual(find_first_in_pages(pages(), "Items", lambda item: item == "b"), "b")
        self.assertEqual(consumed, [0, 1])

    def test_missing_result_key_and_none_page(self) -> None:
        pages: List[Optional[Dict[str, Any]]] = [{}, None, {"Items": None}, {"Items": ["x"]}]
        self.assertEqual(find_first_in_pages(pages, "Items", lambda item: item == "x"), "x")

    def test_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            find_first_in_pages([{"Items": ["a"]}], "Items", lambda item: item == "z")

    def test_find_all_in_pages_scans_everything(self) -> None:
        pages = [{"Items": [1, 2, None]}, {"Items": [3, 4]}]
        self.assertEqual(find_all_in_pages(pages, "Items", lambda item: item % 2 == 0), [2, 4])
        self.assertEqual(find_all_in_pages(pages, "Items"), [1, 2, 3, 4])


class TestFindAll(unittest.TestCase):
    def test_collects_matches_from_all_pages(self) -> None:
        fetcher = RecordingFetcher([[1, 2], None, [3, 4]])
        self.assertEqual(find_all(fetcher, lambda item: item > 1), [2, 3, 4])
        self.assertEqual(len(fetcher.calls), 3)

    def test_no_match_returns_empty_list(self) -> None:
        self.assertEqual(find_all(RecordingFetcher([[1]]), lambda item: False), [])


class TestAssertSingleValueResult(unittest.TestCase):
    def test_single(self) -> None:
        self.assertEqual(assert_single_value_result(["only"]), "only")

    def test_empty(self) -> None:
        with self.assertRaises(EmptyResultError) as context:
            assert_single_value_result([], request={"Name": "x"})
        self.assertEqual(str(context.exception), "empty result")
        self.assertTrue(is_not_found(context.exception))

    def test_too_many(self) -> None:
        with self.assertRaises(TooManyResultsError) as context:
            assert_single_value_result([1, 2, 3])
        self.assertEqual(context.exception.count, 3)
        self.assertIn("wanted 1, got 3", str(context.exception))


if __name__ == "__main__":
    unittest.main()
