import pytest

from graph_repository.lazy import LazySequence
from graph_repository.models import PageRequest
from graph_repository.window import ResultWindow, extract_page

from conftest import CountingIterator

DATA = list(range(10))


@pytest.mark.parametrize("offset,limit", [(0, 3), (2, 5), (4, 6), (0, 10), (9, 1)])
def test_content_is_slice_when_window_fits(offset, limit):
    page = extract_page(LazySequence(DATA), offset, limit)
    assert page.content == DATA[offset : offset + limit]


@pytest.mark.parametrize("offset", [10, 11, 50])
def test_offset_past_end_gives_empty_content(offset):
    page = extract_page(LazySequence(DATA), offset, 3)
    assert page.content == []
    assert page.total_count == len(DATA)


def test_more_data_gives_lower_bound_total_and_stops_after_peek():
    source = CountingIterator(DATA)
    page = extract_page(LazySequence(source), 2, 3)
    assert page.content == [2, 3, 4]
    assert page.total_count == 2 + 3 + 1
    # five walked plus the single peeked element
    assert source.pulled == 6
    assert page.has_next


@pytest.mark.parametrize("offset,limit", [(0, 10), (4, 6), (7, 5), (8, 100)])
def test_short_source_gives_exact_total(offset, limit):
    page = extract_page(LazySequence(DATA), offset, limit)
    assert page.total_count == len(DATA)
    assert page.content == DATA[offset:]
    assert not page.has_next


def test_zero_limit_is_rejected():
    with pytest.raises(ValueError):
        extract_page(LazySequence(DATA), 0, 0)


def test_negative_offset_is_rejected():
    with pytest.raises(ValueError):
        extract_page(LazySequence(DATA), -1, 3)


def test_extract_page_does_not_close_source():
    seq = LazySequence(DATA)
    extract_page(seq, 0, 2)
    assert not seq.closed
    assert seq.next() == 2


def test_result_window_closes_source_and_keeps_request():
    released = []
    seq = LazySequence(DATA, release=lambda: released.append(True))
    request = PageRequest.of(1, 4)
    page = ResultWindow(request).apply(seq)
    assert page.content == [4, 5, 6, 7]
    assert page.page_request is request
    assert page.number == 1
    assert released == [True]


def test_result_window_closes_source_on_error():
    released = []

    def broken():
        yield 1
        raise RuntimeError("cursor died")

    seq = LazySequence(broken(), release=lambda: released.append(True))
    with pytest.raises(RuntimeError):
        ResultWindow(PageRequest(0, 5)).apply(seq)
    assert released == [True]
