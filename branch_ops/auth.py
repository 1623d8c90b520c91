# branch_ops/auth.py
"""
Authentication Manager for Streamlit Apps

Version: 1.0.0
Features:
- Email/password sign-in against the backend's auth service
- Access/refresh tokens remembered per browser (cookie) for session restore
- Restore raced against a short timeout (read-only until confirmed when the timer wins)
- Role-based access control (ADMIN / EDITOR / LECTOR)
- Session management with timeout
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import datetime, timedelta
from functools import wraps
from urllib.parse import quote, unquote
from typing import Dict, List, Optional, Tuple

import streamlit as st
import streamlit.components.v1 as components

from .config import config
from .constants import ROLE_ADMIN, ROLE_READER, WRITE_ROLES
from .db import BackendClient, BackendError, get_supabase_client, reset_supabase_client
from .models import Profile
from .store import BranchDataStore

logger = logging.getLogger(__name__)


class AuthError(BackendError):
    """Sign-in rejected by the auth service."""


# ==================== BROWSER TOKEN COOKIE ====================

class TokenStore:
    """
    Session tokens remembered in the visitor's own browser (a cookie).

    Nothing is kept on the server: a new browser has no cookie and starts
    at the login form. The role is never stored; it is re-read from the
    profile on every restore.

    Cookies are read from the request (`st.context.cookies`). Writes are
    queued in session state and rendered by `flush()` on the next run,
    so they survive the `st.rerun()` that follows login/logout.

    Usage:
        tokens = TokenStore()
        tokens.save({'access_token': ..., 'refresh_token': ...})
        data = tokens.load()
        tokens.clear()
        tokens.flush()      # once per run, from app.py
    """

    STORED_KEYS = ("access_token", "refresh_token", "username", "login_time")

    def __init__(self, cookie_name: Optional[str] = None, max_age_hours: Optional[int] = None):
        self.cookie_name = cookie_name or config.get_app_setting("SESSION_COOKIE_NAME", "branch_ops_session")
        self.max_age = int(
            (max_age_hours or config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)) * 3600
        )

    @property
    def _pending_key(self) -> str:
        return f"_{self.cookie_name}_pending"

    @property
    def _cleared_key(self) -> str:
        return f"_{self.cookie_name}_cleared"

    def save(self, data: Dict):
        payload = {k: data[k] for k in self.STORED_KEYS if data.get(k) is not None}
        st.session_state[self._pending_key] = (quote(json.dumps(payload, default=str)), self.max_age)
        st.session_state.pop(self._cleared_key, None)

    def load(self) -> Optional[Dict]:
        # Request cookies are fixed for the whole browser session
        if st.session_state.get(self._cleared_key):
            return None

        raw = st.context.cookies.get(self.cookie_name)
        if not raw:
            return None
        try:
            data = json.loads(unquote(raw))
        except ValueError as e:
            logger.warning(f"Ignoring unreadable session cookie: {e}")
            return None
        if not isinstance(data, dict) or not data.get("access_token") or not data.get("refresh_token"):
            return None
        return data

    def clear(self):
        st.session_state[self._pending_key] = ("", 0)
        st.session_state[self._cleared_key] = True

    def flush(self):
        """Write a queued cookie change to the browser"""
        pending = st.session_state.pop(self._pending_key, None)
        if pending is None:
            return
        value, max_age = pending
        components.html(
            "<script>window.parent.document.cookie = "
            f"'{self.cookie_name}={value}; path=/; max-age={max_age}; SameSite=Strict';</script>",
            height=0,
        )


# ==================== AUTH MANAGER ====================

class AuthManager:
    """Authentication manager for Streamlit apps"""

    def __init__(self, client=None, token_store: Optional[TokenStore] = None):
        self._client = client
        self.tokens = token_store or TokenStore()
        self.session_timeout = timedelta(
            hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        )
        self.restore_timeout = config.get_app_setting("SESSION_RESTORE_TIMEOUT_SECONDS", 3)

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    # ==================== AUTHENTICATION ====================

    def sign_in(self, email: str, password: str) -> Tuple[Profile, Dict]:
        """
        Sign in with email and password.

        Returns:
            (profile, tokens) where tokens holds access_token / refresh_token

        Raises:
            AuthError: Credentials rejected or auth service unreachable
        """
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            status = getattr(e, "status", None) or getattr(e, "code", None)
            raise AuthError(status, getattr(e, "message", None) or str(e), table="auth") from e

        if response.session is None or response.user is None:
            raise AuthError(401, "No session returned", table="auth")

        tokens = {
            "access_token": response.session.access_token,
            "refresh_token": response.session.refresh_token,
        }
        profile = self.load_profile(response.user.id, email)
        return profile, tokens

    def load_profile(self, user_id: str, fallback_username: str = "") -> Profile:
        """Profile row of a user; a read-only profile when none exists yet."""
        rows = BackendClient(self.client).fetch_all("profiles", filters={"id": user_id})
        if rows:
            return Profile.from_row(rows[0])

        logger.warning(f"No profile for user {user_id}, defaulting to {ROLE_READER}")
        return Profile(id=user_id, username=fallback_username or user_id, role=ROLE_READER)

    def authenticate(self, email: str, password: str) -> Tuple[bool, Dict]:
        """
        Authenticate user against the auth service

        Returns:
            Tuple of (success: bool, user_info: dict or error: dict)
        """
        try:
            profile, tokens = self.sign_in(email, password)
        except AuthError as e:
            logger.warning(f"Login failed for {email}: {e.body}")
            return False, {"error": "Correo o contraseña inválidos"}
        except BackendError as e:
            logger.error(f"Profile lookup failed for {email}: {e}")
            return False, {"error": "No se pudo cargar el perfil. Intente de nuevo."}

        logger.info(f"User {profile.username} authenticated successfully")
        return True, {
            "profile": profile,
            "tokens": tokens,
            "login_time": datetime.now(),
        }

    # ==================== SESSION MANAGEMENT ====================

    def login(self, user_info: Dict, persist: bool = True) -> BranchDataStore:
        """Initialize user session and the data store after authentication"""
        profile: Profile = user_info["profile"]

        st.session_state.authenticated = True
        st.session_state.user_id = profile.id
        st.session_state.username = profile.username
        st.session_state.user_role = profile.role
        st.session_state.user_photo = profile.photo_url
        st.session_state.login_time = user_info["login_time"]
        st.session_state.debug_mode = config.get_app_setting("ENABLE_DEBUG_MODE", False)

        if persist:
            self.tokens.save({
                **user_info["tokens"],
                "username": profile.username,
                "login_time": user_info["login_time"].isoformat(),
            })

        store = BranchDataStore(backend=BackendClient(self.client), user=profile)
        store.reload()
        st.session_state.store = store

        logger.info(f"User {profile.username} ({profile.role}) logged in successfully")
        return store

    def restore_session(self) -> bool:
        """
        Restore a remembered session from this browser's token cookie.

        The token exchange races a short timer. When the timer wins the
        session proceeds read-only (LECTOR) and `check_session` applies the
        real profile once the exchange finishes. A rejected token forgets
        the cookie.
        """
        saved = self.tokens.load()
        if not saved:
            return False

        try:
            login_time = datetime.fromisoformat(saved.get("login_time"))
        except (TypeError, ValueError):
            login_time = datetime.now()

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(
            self.client.auth.set_session, saved["access_token"], saved["refresh_token"]
        )
        try:
            response = future.result(timeout=self.restore_timeout)
        except FutureTimeout:
            logger.warning(f"⏱️ Session restore timed out after {self.restore_timeout}s, read-only until confirmed")
            profile = Profile(id="", username=saved.get("username", ""), role=ROLE_READER)
            self.login({"profile": profile, "tokens": saved, "login_time": login_time}, persist=False)
            st.session_state.pending_restore = (future, saved.get("username", ""))
            return True
        except Exception as e:
            logger.warning(f"Stored session rejected: {e}")
            self.tokens.clear()
            return False
        finally:
            executor.shutdown(wait=False)

        try:
            profile = self._restored_profile(response, saved.get("username", ""))
        except BackendError as e:
            logger.warning(f"Stored session rejected: {e}")
            self.tokens.clear()
            return False

        self.login({"profile": profile, "tokens": saved, "login_time": login_time}, persist=False)
        logger.info(f"🔄 Session restored for {profile.username}")
        return True

    def _restored_profile(self, response, fallback_username: str) -> Profile:
        """Profile of the user the backend confirmed for the restored tokens"""
        user = getattr(response, "user", None)
        if user is None:
            raise AuthError(401, "No user for restored session", table="auth")
        return self.load_profile(user.id, fallback_username)

    def _settle_pending_restore(self) -> bool:
        """Apply the outcome of a restore that outlived its timer"""
        pending = st.session_state.get('pending_restore')
        if pending is None or not pending[0].done():
            return True

        future, fallback_username = pending
        del st.session_state['pending_restore']
        try:
            profile = self._restored_profile(future.result(), fallback_username)
        except Exception as e:
            logger.warning(f"Stored session rejected: {e}")
            self.logout()
            return False

        st.session_state.user_id = profile.id
        st.session_state.username = profile.username
        st.session_state.user_role = profile.role
        st.session_state.user_photo = profile.photo_url
        store = st.session_state.get('store')
        if store is not None:
            store.user = profile

        logger.info(f"🔄 Session confirmed for {profile.username} ({profile.role})")
        return True

    def check_session(self) -> bool:
        """Check if user session is valid and not expired"""
        if not st.session_state.get('authenticated'):
            return False

        login_time = st.session_state.get('login_time')
        if login_time and datetime.now() - login_time > self.session_timeout:
            logger.info(f"Session expired for user: {st.session_state.get('username')}")
            self.logout()
            return False

        return self._settle_pending_restore()

    def logout(self):
        """Sign out, forget tokens, and drop the data store"""
        username = st.session_state.get('username', 'Unknown')

        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.warning(f"Remote sign-out failed for {username}: {e}")

        self.tokens.clear()

        auth_keys = [
            'authenticated', 'user_id', 'username', 'user_role',
            'user_photo', 'login_time', 'debug_mode', 'store', 'pending_restore',
        ]
        for key in auth_keys:
            if key in st.session_state:
                del st.session_state[key]

        st.cache_data.clear()
        reset_supabase_client()
        self._client = None

        logger.info(f"User {username} logged out")

    # ==================== ACCESS CONTROL ====================

    def require_auth(self) -> bool:
        """
        Require authentication to access a page
        Use at the beginning of each protected page
        """
        if not self.check_session() and not self.restore_session():
            st.warning("⚠️ Inicie sesión para acceder a esta página")
            st.stop()
            return False
        return True

    def require_role(self, allowed_roles: List[str]) -> bool:
        """
        Require specific role(s) to access a page

        Usage:
            auth.require_role(['ADMIN', 'EDITOR'])
        """
        if not self.require_auth():
            return False

        if st.session_state.get('user_role', '') not in allowed_roles:
            st.error(f"🚫 Acceso denegado. Rol requerido: {', '.join(allowed_roles)}")
            st.stop()
            return False

        return True

    def has_role(self, role: str) -> bool:
        return st.session_state.get('user_role', '') == role

    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)

    def can_write(self) -> bool:
        """Editors and admins may write; LECTOR is read-only"""
        return st.session_state.get('user_role', '') in WRITE_ROLES

    # ==================== USER INFO HELPERS ====================

    def get_user_display_name(self) -> str:
        return st.session_state.get('username', 'Usuario')

    def get_store(self) -> BranchDataStore:
        """Session data store (created at login)"""
        return st.session_state.store


# ==================== DECORATORS ====================

def require_login(func):
    """Decorator to require login for a function"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if AuthManager().require_auth():
            return func(*args, **kwargs)
    return wrapper


def require_roles(*roles):
    """Decorator to require specific roles"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if AuthManager().require_role(list(roles)):
                return func(*args, **kwargs)
        return wrapper
    return decorator


__all__ = [
    'AuthError',
    'AuthManager',
    'TokenStore',
    'require_login',
    'require_roles',
]
