from starlette.requests import Request

from backoffice.utils.listing import ListState


def _request(query: bytes, path="/customers"):
    return Request({"type": "http", "method": "GET", "path": path, "query_string": query, "headers": []})


def test_from_request_reads_filters_and_page():
    state = ListState.from_request(_request(b"search=ana&page=3&is_active=true&other=x"), ("search", "is_active"))
    assert state.page == 3
    assert state.filters == {"search": "ana", "is_active": "true"}
    assert state.params() == {"search": "ana", "is_active": "true", "page": 3, "page_size": state.page_size}


def test_invalid_page_falls_back_to_first():
    assert ListState.from_request(_request(b"page=abc"), ()).page == 1
    assert ListState.from_request(_request(b"page=-2"), ()).page == 1


def test_defaults_apply_until_user_chooses():
    defaults = {"status": "PENDING"}
    state = ListState.from_request(_request(b"", "/follow-ups"), ("status",), defaults)
    assert state.get("status") == "PENDING"

    state = ListState.from_request(_request(b"status=all", "/follow-ups"), ("status",), defaults)
    assert state.get("status") == "all"


def test_filter_change_resets_page():
    state = ListState("/loans", 4, {"status": "ACTIVE"})
    nuevo = state.with_filters(search="smith")
    assert nuevo.page == 1
    assert nuevo.filters == {"status": "ACTIVE", "search": "smith"}


def test_urls_keep_filters():
    state = ListState("/loans", 1, {"status": "ACTIVE", "search": ""})
    assert state.url() == "/loans?status=ACTIVE"
    assert state.page_url(2) == "/loans?status=ACTIVE&page=2"
    assert ListState("/loans").url() == "/loans"


def test_num_pages():
    state = ListState("/loans", page_size=10)
    assert state.num_pages(0) == 1
    assert state.num_pages(10) == 1
    assert state.num_pages(11) == 2
