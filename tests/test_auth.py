import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from app.core.config import settings
from app.core.exceptions import AuthError, StoreError
from app.services.auth_service import auth_service


def supabase_with_auth(**methods):
    client = MagicMock()
    for name, mock in methods.items():
        setattr(client.auth, name, mock)
    return AsyncMock(return_value=client)


@pytest.fixture
def configured():
    with patch.object(settings, "SUPABASE_URL", "https://demo.supabase.co"), \
         patch.object(settings, "SUPABASE_KEY", "service-key"):
        yield


@pytest.fixture
def mock_db():
    db = AsyncMock()
    with patch("app.services.auth_service.db_service", db):
        yield db


@pytest.fixture(autouse=True)
def fresh_auth_client():
    auth_service._client = None
    yield
    auth_service._client = None


@pytest.mark.asyncio
async def test_sign_in_routes_admin_to_dashboard(configured, mock_db):
    response = SimpleNamespace(
        user=SimpleNamespace(id="uid-1", email="boss@example.com"),
        session=SimpleNamespace(access_token="jwt-token"),
    )
    mock_db.ensure_user.return_value = {"id": "uid-1", "email": "boss@example.com", "role": "admin"}
    factory = supabase_with_auth(sign_in_with_password=AsyncMock(return_value=response))

    with patch("app.services.auth_service.create_async_client", factory):
        session = await auth_service.sign_in("boss@example.com", "secret")

    assert session.access_token == "jwt-token"
    assert session.user.role == "admin"
    assert session.redirect == "/dashboard"
    mock_db.ensure_user.assert_awaited_once_with("uid-1", "boss@example.com")


@pytest.mark.asyncio
async def test_sign_in_customer_lands_on_services(configured, mock_db):
    response = SimpleNamespace(
        user=SimpleNamespace(id="uid-2", email="c@example.com"),
        session=SimpleNamespace(access_token="jwt"),
    )
    mock_db.ensure_user.return_value = {"id": "uid-2", "email": "c@example.com"}
    factory = supabase_with_auth(sign_in_with_password=AsyncMock(return_value=response))

    with patch("app.services.auth_service.create_async_client", factory):
        session = await auth_service.sign_in("c@example.com", "secret")

    assert session.user.role == "customer"
    assert session.redirect == "/services"


@pytest.mark.asyncio
async def test_sign_in_bad_password_is_auth_error(configured, mock_db):
    factory = supabase_with_auth(sign_in_with_password=AsyncMock(side_effect=Exception("Invalid login credentials")))

    with patch("app.services.auth_service.create_async_client", factory):
        with pytest.raises(AuthError):
            await auth_service.sign_in("c@example.com", "wrong")
    mock_db.ensure_user.assert_not_awaited()


@pytest.mark.asyncio
async def test_sign_up_without_confirmation_session(configured, mock_db):
    response = SimpleNamespace(user=SimpleNamespace(id="uid-3", email="n@example.com"), session=None)
    mock_db.ensure_user.return_value = {"id": "uid-3", "email": "n@example.com", "role": "customer"}
    factory = supabase_with_auth(sign_up=AsyncMock(return_value=response))

    with patch("app.services.auth_service.create_async_client", factory):
        session = await auth_service.sign_up("n@example.com", "secret1")

    assert session.access_token is None
    assert session.redirect == "/services"


@pytest.mark.asyncio
async def test_resolve_token_role_lookup_failure_means_customer(configured, mock_db):
    user_response = SimpleNamespace(user=SimpleNamespace(id="uid-1", email="boss@example.com"))
    mock_db.get_user.side_effect = StoreError("down")
    factory = supabase_with_auth(get_user=AsyncMock(return_value=user_response))

    with patch("app.services.auth_service.create_async_client", factory):
        profile = await auth_service.resolve_token("jwt")

    assert profile.id == "uid-1"
    assert profile.is_admin is False


@pytest.mark.asyncio
async def test_resolve_token_rejected(configured, mock_db):
    factory = supabase_with_auth(get_user=AsyncMock(side_effect=Exception("invalid JWT")))

    with patch("app.services.auth_service.create_async_client", factory):
        with pytest.raises(AuthError):
            await auth_service.resolve_token("expired")


@pytest.mark.asyncio
async def test_auth_client_is_created_once_and_reused(configured, mock_db):
    user_response = SimpleNamespace(user=SimpleNamespace(id="uid-1", email="somchai@example.com"))
    mock_db.get_user.return_value = {"id": "uid-1", "email": "somchai@example.com", "role": "customer"}
    factory = supabase_with_auth(get_user=AsyncMock(return_value=user_response))

    with patch("app.services.auth_service.create_async_client", factory):
        await auth_service.resolve_token("jwt-a")
        await auth_service.resolve_token("jwt-b")

    assert factory.await_count == 1
    options = factory.await_args.kwargs["options"]
    assert options.auto_refresh_token is False
    assert options.persist_session is False
