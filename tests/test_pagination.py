from fansite.services.pagination import PageParams, escape_like, page_dict, total_pages


def test_offset_follows_page_and_limit():
    assert PageParams(page=1, limit=20).offset == 0
    assert PageParams(page=3, limit=25).offset == 50


def test_order_is_case_insensitive():
    assert PageParams(order="desc").descending is True
    assert PageParams(order="ASC").descending is False


def test_total_pages_rounds_up():
    assert total_pages(0, 20) == 0
    assert total_pages(20, 20) == 1
    assert total_pages(21, 20) == 2


def test_page_dict_shape():
    body = page_dict(["a", "b"], total=7, params=PageParams(page=2, limit=2))
    assert body == {"data": ["a", "b"], "total": 7, "page": 2, "per_page": 2, "total_pages": 4}


def test_escape_like_neutralises_wildcards():
    assert escape_like("100%_done") == r"100\%\_done"
    assert escape_like(r"back\slash") == r"back\\slash"
