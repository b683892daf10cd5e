# tests/test_session.py
import requests

from storeadmin import AdminClient, AuthSession, RequestContext, TokenStore
from tests.conftest import ADMIN, BASE_URL, CannedSession


def test_loading_until_restore_settles(session):
    assert session.loading is True
    assert session.restore() is None
    assert session.loading is False
    assert not session.is_authenticated


def test_login_persists_token_and_user(session, token_store):
    result = session.login(*ADMIN)
    assert result.success
    assert session.user.username == "admin"
    assert session.user.role == "admin"
    assert token_store.load() == session.token


def test_login_failure_reports_server_message(session, token_store):
    result = session.login("admin", "wrong")
    assert not result.success
    assert result.message == "Invalid credentials"
    assert session.token is None
    assert token_store.load() is None


class _Unreachable:
    def request(self, method, url, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")


def test_login_failure_without_server_message(token_store):
    session = AuthSession(AdminClient(base_url=BASE_URL, session=_Unreachable()), token_store)
    result = session.login(*ADMIN)
    assert not result.success
    assert result.message == "Login failed"


def test_restore_rehydrates_user_from_persisted_token(logged_in, admin_client, token_store):
    fresh = AuthSession(admin_client, token_store)
    user = fresh.restore()
    assert user is not None and user.username == "admin"
    assert fresh.token == logged_in.token
    assert fresh.loading is False


def test_invalid_persisted_token_collapses_to_logged_out(admin_client, token_store):
    token_store.save("stale-token")
    session = AuthSession(admin_client, token_store)
    assert session.restore() is None
    assert session.user is None
    assert session.token is None
    assert token_store.load() is None


def test_fetch_current_user_failure_matches_logout(logged_in, api, token_store):
    api.post("/reset")  # drops every issued token server side
    assert logged_in.fetch_current_user() is None
    assert (logged_in.user, logged_in.token, token_store.load()) == (None, None, None)


def test_logout_is_idempotent(logged_in, token_store):
    logged_in.logout()
    logged_in.logout()
    assert logged_in.context() == RequestContext()
    assert token_store.load() is None


def test_token_store_ignores_garbage(tmp_path):
    path = tmp_path / "token.json"
    path.write_text("not json")
    assert TokenStore(path).load() is None
    TokenStore(path).save("abc")
    assert TokenStore(path).load() == "abc"


def _restore_against(canned, token_store):
    token_store.save("tok")
    session = AuthSession(AdminClient(base_url=BASE_URL, session=canned), token_store)
    assert session.restore() is None
    return session


def test_restore_with_user_missing_username_logs_out(token_store):
    session = _restore_against(CannedSession(json={"user": {"role": "admin"}}), token_store)
    assert (session.user, session.token, token_store.load()) == (None, None, None)
    assert session.loading is False


def test_restore_with_non_json_body_logs_out(token_store):
    session = _restore_against(CannedSession(content=b"<html>maintenance</html>"), token_store)
    assert (session.user, session.token, token_store.load()) == (None, None, None)
    assert session.loading is False


def test_login_with_malformed_user_is_a_failed_login(token_store):
    canned = CannedSession(json={"token": "tok", "user": {"role": "admin"}})
    session = AuthSession(AdminClient(base_url=BASE_URL, session=canned), token_store)
    result = session.login(*ADMIN)
    assert not result.success
    assert result.message == "Login failed"
    assert session.token is None and token_store.load() is None
