import httpx
import pytest

from backoffice.api.client import ApiClient, clean_params
from backoffice.api.errors import ApiError, SessionExpired
from backoffice.api.session import ApiSession
from backoffice.models import Customer

from conftest import FakeApi, customer_json, page

pytestmark = pytest.mark.anyio


def _client(fake: FakeApi, access="old", refresh="ref") -> ApiClient:
    return ApiClient(ApiSession(access, refresh), transport=httpx.MockTransport(fake.handler))


def _por_token(validos):
    """Responde 200 sólo al token de acceso indicado."""
    def responder(request):
        if request.headers.get("Authorization") == f"Bearer {validos}":
            return 200, page(customer_json())
        return 401, {"detail": "Token is invalid or expired"}
    return responder


async def test_refresh_once_and_retry():
    fake = FakeApi()
    fake.add("GET", "customers/", _por_token("new"))
    fake.add("POST", "token/refresh/", {"access": "new"})
    api = _client(fake)

    result = await api.get_page("customers/", Customer)

    assert result.count == 1
    assert api.session.access_token == "new"
    assert api.session.changed
    assert fake.called("POST", "token/refresh/") == [{"refresh": "ref"}]
    assert len(fake.called("GET", "customers/")) == 2


async def test_refresh_failure_clears_session():
    fake = FakeApi()
    fake.add("GET", "customers/", _por_token("new"))
    fake.add("POST", "token/refresh/", {"detail": "Token is blacklisted"}, status=401)
    api = _client(fake)

    with pytest.raises(SessionExpired):
        await api.get("customers/")

    assert api.session.access_token is None
    assert api.session.refresh_token is None
    assert len(fake.called("POST", "token/refresh/")) == 1


async def test_401_after_refresh_does_not_loop():
    fake = FakeApi()
    fake.add("GET", "customers/", _por_token("never"))
    fake.add("POST", "token/refresh/", {"access": "new"})
    api = _client(fake)

    with pytest.raises(SessionExpired):
        await api.get("customers/")

    assert len(fake.called("POST", "token/refresh/")) == 1
    assert len(fake.called("GET", "customers/")) == 2


async def test_no_refresh_token_expires_immediately():
    fake = FakeApi()
    fake.add("GET", "customers/", _por_token("never"))
    api = _client(fake, refresh=None)

    with pytest.raises(SessionExpired):
        await api.get("customers/")

    assert fake.called("POST", "token/refresh/") == []


async def test_login_401_is_not_refreshed():
    fake = FakeApi()
    fake.add("POST", "token/", {"detail": "No active account found"}, status=401)
    api = _client(fake, access=None, refresh=None)

    with pytest.raises(ApiError) as exc:
        await api.post("token/", json={"username": "x", "password": "y"})

    assert exc.value.status_code == 401
    assert exc.value.detail == "No active account found"
    assert fake.called("POST", "token/refresh/") == []


async def test_error_detail_from_server():
    fake = FakeApi()
    fake.add("POST", "customers/", {"detail": "Duplicate national ID"}, status=400)

    with pytest.raises(ApiError) as exc:
        await _client(fake).post("customers/", json={})

    assert exc.value.detail == "Duplicate national ID"
    assert exc.value.message_or("Failed to create customer") == "Duplicate national ID"


async def test_field_errors_are_collected():
    fake = FakeApi()
    fake.add("POST", "customers/", {"primary_phone": ["Enter a valid phone number."]}, status=400)

    with pytest.raises(ApiError) as exc:
        await _client(fake).post("customers/", json={})

    assert exc.value.errors == {"primary_phone": "Enter a valid phone number."}
    assert exc.value.detail == "primary_phone: Enter a valid phone number."


async def test_error_without_body_uses_generic_message():
    fake = FakeApi()
    fake.add("DELETE", "customers/3/", None, status=500)

    with pytest.raises(ApiError) as exc:
        await _client(fake).delete("customers/3/")

    assert exc.value.status_code == 500
    assert not exc.value.from_server
    assert exc.value.message_or("Failed to delete customer") == "Failed to delete customer"


async def test_network_error_becomes_api_error():
    def caido(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = ApiClient(ApiSession("tok"), transport=httpx.MockTransport(caido))

    with pytest.raises(ApiError) as exc:
        await api.get("customers/")

    assert exc.value.status_code == 503


async def test_timeout_is_reported_as_unreachable():
    def lento(request):
        raise httpx.ReadTimeout("timed out", request=request)

    api = ApiClient(ApiSession("tok"), transport=httpx.MockTransport(lento))

    with pytest.raises(ApiError) as exc:
        await api.get("customers/")

    assert exc.value.status_code == 503
    assert exc.value.detail == "Could not reach the server."
    assert not exc.value.from_server


async def test_unpaginated_list_is_wrapped():
    fake = FakeApi()
    fake.add("GET", "customers/3/loans/", [])

    result = await _client(fake).get_page("customers/3/loans/", Customer)

    assert result.count == 0
    assert result.results == []


async def test_bearer_header_is_sent():
    fake = FakeApi()
    vistos = []

    def responder(request):
        vistos.append(request.headers.get("Authorization"))
        return 200, page()

    fake.add("GET", "loans/", responder)
    await _client(fake, access="abc").get("loans/")

    assert vistos == ["Bearer abc"]


def test_clean_params_drops_empty_and_all():
    params = clean_params({"search": "", "status": "all", "page": 2, "is_active": True, "role": None})
    assert params == {"page": 2, "is_active": "true"}
