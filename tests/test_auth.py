# tests/test_auth.py
import json
import threading
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch
from urllib.parse import quote, unquote

import pytest

from branch_ops.auth import AuthManager, TokenStore


class SessionState(dict):
    """Dict with attribute access, like st.session_state"""

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as e:
            raise AttributeError(key) from e

    def __setattr__(self, key, value):
        self[key] = value

    def __delattr__(self, key):
        del self[key]


def cookie(data):
    return quote(json.dumps(data))


@pytest.fixture
def fake_st():
    with patch("branch_ops.auth.st") as st:
        st.session_state = SessionState()
        st.context.cookies = {}
        yield st


@pytest.fixture
def components():
    with patch("branch_ops.auth.components") as components:
        yield components


@pytest.fixture
def data_store():
    with patch("branch_ops.auth.BranchDataStore") as store_cls:
        yield store_cls


@pytest.fixture
def tokens(fake_st):
    return TokenStore(cookie_name="session", max_age_hours=8)


@pytest.fixture
def client():
    client = MagicMock()
    session = MagicMock(access_token="access", refresh_token="refresh")
    client.auth.sign_in_with_password.return_value = MagicMock(session=session, user=MagicMock(id="u1"))
    client.auth.set_session.return_value = MagicMock(user=MagicMock(id="u1"))
    set_profile(client, [{"id": "u1", "username": "gerente", "role": "EDITOR"}])
    return client


def set_profile(client, rows):
    profiles = client.table.return_value.select.return_value.eq.return_value.range.return_value
    profiles.execute.return_value = MagicMock(data=rows)


class TestTokenStore:
    def test_load_reads_browser_cookie(self, fake_st, tokens):
        fake_st.context.cookies = {"session": cookie({"access_token": "a", "refresh_token": "r", "username": "x"})}
        assert tokens.load()["username"] == "x"

    def test_incomplete_cookie_ignored(self, fake_st, tokens):
        fake_st.context.cookies = {"session": cookie({"access_token": "a"})}
        assert tokens.load() is None

    def test_corrupt_cookie_ignored(self, fake_st, tokens):
        fake_st.context.cookies = {"session": "{not json"}
        assert tokens.load() is None

    def test_save_never_stores_role(self, fake_st, tokens, components):
        tokens.save({"access_token": "a", "refresh_token": "r", "role": "ADMIN", "user_id": "u9"})
        tokens.flush()

        script = components.html.call_args[0][0]
        value = script.split("session=", 1)[1].split(";", 1)[0]
        assert json.loads(unquote(value)) == {"access_token": "a", "refresh_token": "r"}
        assert "max-age=28800" in script

    def test_flush_writes_once(self, tokens, components):
        tokens.save({"access_token": "a", "refresh_token": "r"})
        tokens.flush()
        tokens.flush()
        assert components.html.call_count == 1

    def test_clear_hides_cookie_for_rest_of_session(self, fake_st, tokens, components):
        fake_st.context.cookies = {"session": cookie({"access_token": "a", "refresh_token": "r"})}
        tokens.clear()
        assert tokens.load() is None

        tokens.flush()
        assert "max-age=0" in components.html.call_args[0][0]


class TestAuthenticate:
    def test_success_loads_profile(self, client, tokens):
        ok, info = AuthManager(client=client, token_store=tokens).authenticate("g@baz.mx", "secret")
        assert ok
        assert info["profile"].role == "EDITOR"
        assert info["tokens"] == {"access_token": "access", "refresh_token": "refresh"}

    def test_rejected_credentials(self, client, tokens):
        client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
        ok, info = AuthManager(client=client, token_store=tokens).authenticate("g@baz.mx", "bad")
        assert not ok
        assert info["error"] == "Correo o contraseña inválidos"

    def test_missing_profile_is_read_only(self, client, tokens):
        set_profile(client, [])
        ok, info = AuthManager(client=client, token_store=tokens).authenticate("g@baz.mx", "secret")
        assert ok
        assert info["profile"].role == "LECTOR"
        assert info["profile"].username == "g@baz.mx"


class TestSession:
    def test_roles(self, fake_st, client, tokens):
        auth = AuthManager(client=client, token_store=tokens)
        fake_st.session_state["user_role"] = "LECTOR"
        assert not auth.can_write()
        fake_st.session_state["user_role"] = "ADMIN"
        assert auth.can_write()
        assert auth.is_admin()

    def test_unauthenticated(self, fake_st, client, tokens):
        assert not AuthManager(client=client, token_store=tokens).check_session()

    def test_expired_session_logs_out(self, fake_st, client, tokens):
        fake_st.session_state.update({
            "authenticated": True,
            "username": "gerente",
            "login_time": datetime.now() - timedelta(hours=9),
        })

        with patch("branch_ops.auth.reset_supabase_client"):
            assert not AuthManager(client=client, token_store=tokens).check_session()

        assert "authenticated" not in fake_st.session_state
        client.auth.sign_out.assert_called_once()


class TestRestore:
    def test_new_browser_is_not_logged_in_as_previous_user(self, fake_st, client, tokens, data_store):
        auth = AuthManager(client=client, token_store=tokens)
        ok, info = auth.authenticate("g@baz.mx", "secret")
        auth.login(info, persist=True)
        assert fake_st.session_state["authenticated"]

        # Another visitor: own session state, no cookie in their browser
        fake_st.session_state = SessionState()
        fake_st.context.cookies = {}

        assert not (auth.check_session() or auth.restore_session())
        assert "authenticated" not in fake_st.session_state
        client.auth.set_session.assert_not_called()

    def test_role_comes_from_profile_not_cookie(self, fake_st, client, tokens, data_store):
        set_profile(client, [{"id": "u1", "username": "gerente", "role": "LECTOR"}])
        fake_st.context.cookies = {"session": cookie({
            "access_token": "a", "refresh_token": "r", "username": "gerente", "role": "ADMIN",
        })}

        assert AuthManager(client=client, token_store=tokens).restore_session()
        client.auth.set_session.assert_called_once_with("a", "r")
        assert fake_st.session_state["user_role"] == "LECTOR"
        assert fake_st.session_state["user_id"] == "u1"

    def test_rejected_token_forgets_cookie(self, fake_st, client, tokens, data_store):
        fake_st.context.cookies = {"session": cookie({"access_token": "a", "refresh_token": "r"})}
        client.auth.set_session.side_effect = Exception("JWT expired")

        assert not AuthManager(client=client, token_store=tokens).restore_session()
        assert tokens.load() is None
        assert "authenticated" not in fake_st.session_state

    def test_slow_restore_is_read_only_until_confirmed(self, fake_st, client, tokens, data_store):
        release = threading.Event()

        def slow_set_session(access, refresh):
            release.wait(5)
            return MagicMock(user=MagicMock(id="u1"))

        client.auth.set_session.side_effect = slow_set_session
        fake_st.context.cookies = {"session": cookie({"access_token": "a", "refresh_token": "r", "username": "gerente"})}

        auth = AuthManager(client=client, token_store=tokens)
        auth.restore_timeout = 0.01
        assert auth.restore_session()
        assert fake_st.session_state["user_role"] == "LECTOR"

        release.set()
        fake_st.session_state["pending_restore"][0].result(timeout=5)

        assert auth.check_session()
        assert fake_st.session_state["user_role"] == "EDITOR"
        assert "pending_restore" not in fake_st.session_state
