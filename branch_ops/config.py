# branch_ops/config.py
"""
Branch Operations Settings

Version: 1.0.0
Sources, in order:
- Streamlit Cloud secrets ([SUPABASE] URL / ANON_KEY) when deployed
- a local .env file otherwise (SUPABASE_URL / SUPABASE_ANON_KEY)
- environment variables for every application setting below

The module exposes one shared `config` instance.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, List
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """True when Streamlit secrets are available (Cloud deployment)."""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


def _dotenv_candidates() -> List[Path]:
    """Working directory first, then the project root."""
    return [Path.cwd() / ".env", Path(__file__).resolve().parent.parent / ".env"]


@dataclass
class SupabaseConfig:
    """Project URL and public (anon) key of the Supabase backend"""
    url: str = ""
    anon_key: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {'url': self.url, 'anon_key': self.anon_key}

    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)


class Config:
    """
    Shared settings object.

    Usage:
        from branch_ops.config import config

        backend = config.get_supabase_config()
        workers = config.get_app_setting("FETCH_WORKERS", 6)
        if config.is_feature_enabled("AUDIT_LOG"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._supabase_config = self._read_cloud_secrets() if self.is_cloud else self._read_local_env()
        self._app_config = self._read_app_settings()
        self._report()
        self._initialized = True

    # ==================== SOURCES ====================

    def _read_cloud_secrets(self) -> SupabaseConfig:
        import streamlit as st

        section = st.secrets.get("SUPABASE", {})
        logger.info("☁️ Running in STREAMLIT CLOUD")
        return SupabaseConfig(url=section.get("URL", ""), anon_key=section.get("ANON_KEY", ""))

    def _read_local_env(self) -> SupabaseConfig:
        env_file = next((p for p in _dotenv_candidates() if p.exists()), None)
        if env_file is not None:
            load_dotenv(env_file)
            logger.info(f"Loaded .env from: {env_file}")

        logger.info("💻 Running in LOCAL environment")
        return SupabaseConfig(
            url=os.getenv("SUPABASE_URL", ""),
            anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
        )

    def _read_app_settings(self) -> Dict[str, Any]:
        # Branch-config cache fallback lives under a per-user state directory
        state_dir = Path(os.getenv("BRANCH_OPS_STATE_DIR", str(Path.home() / ".branch_ops")))

        return {
            "SESSION_TIMEOUT_HOURS": _env_int("SESSION_TIMEOUT_HOURS", 8),
            "SESSION_RESTORE_TIMEOUT_SECONDS": _env_float("SESSION_RESTORE_TIMEOUT_SECONDS", 3.0),
            "SESSION_COOKIE_NAME": os.getenv("SESSION_COOKIE_NAME", "branch_ops_session"),

            "FETCH_WORKERS": _env_int("FETCH_WORKERS", 6),
            "BRANCH_CONFIG_CACHE_FILE": os.getenv(
                "BRANCH_CONFIG_CACHE_FILE", str(state_dir / "branch_schedule_config.json")
            ),
            "CACHE_TTL_SECONDS": _env_int("CACHE_TTL_SECONDS", 300),

            "TIMEZONE": os.getenv("TIMEZONE", "America/Mexico_City"),
            "BRANCH_NAME": os.getenv("BRANCH_NAME", "Equipo BAZ"),

            "ENABLE_DEBUG_MODE": _env_flag("ENABLE_DEBUG_MODE", False),
            "ENABLE_AUDIT_LOG": _env_flag("ENABLE_AUDIT_LOG", True),
        }

    def _report(self):
        if self._supabase_config.is_configured():
            logger.info(f"✅ Backend: {self._supabase_config.url}")
        else:
            logger.warning("⚠️ Backend: SUPABASE_URL / SUPABASE_ANON_KEY not configured")

    # ==================== GETTERS ====================

    def get_supabase_config(self) -> Dict[str, Any]:
        return self._supabase_config.to_dict()

    def is_backend_configured(self) -> bool:
        return self._supabase_config.is_configured()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """ENABLE_<FEATURE> flag; unknown features count as enabled."""
        return self._app_config.get(f"ENABLE_{feature.upper()}", True)

    @property
    def supabase_config(self) -> Dict[str, Any]:
        return self.get_supabase_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return dict(self._app_config)


config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
SUPABASE_CONFIG = config.supabase_config
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'SUPABASE_CONFIG',
    'APP_CONFIG',
]
