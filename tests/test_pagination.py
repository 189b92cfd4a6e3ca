import pytest

from order_engine.core.domain.model.pagination import PageMeta, PageRequest


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 10)),
        (0, 5, (1, 5)),
        (-3, 0, (1, 10)),
        (2, 101, (2, 10)),
        (4, 100, (4, 100)),
    ],
)
def test_normalize(page, limit, expected):
    req = PageRequest.normalize(page, limit, default_limit=10, max_limit=100)
    assert (req.page, req.limit) == expected


def test_offset():
    assert PageRequest(page=3, limit=10).offset == 20


def test_meta_for_fifteen_items():
    first = PageMeta.build(15, PageRequest(page=1, limit=10))
    second = PageMeta.build(15, PageRequest(page=2, limit=10))

    assert first == PageMeta(total=15, per_page=10, current_page=1, next=2, prev=None)
    assert second == PageMeta(total=15, per_page=10, current_page=2, next=None, prev=1)


def test_meta_on_exact_boundary_has_no_next_page():
    assert PageMeta.build(20, PageRequest(page=2, limit=10)).next is None
