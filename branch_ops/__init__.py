# branch_ops/__init__.py
"""
Branch Operations Package for Streamlit Apps

This package contains the code shared across all pages:
- auth: Authentication and session management
- config: Configuration management (local + Streamlit Cloud)
- db: Supabase client and table access
- models: Entity dataclasses and their backend mapping
- store: Session data store (reload / optimistic writes)
- weekdays: Weekday conventions and calendar helpers
- performance: Targets, actuals, commitments, ranking
- schedule: Schedule grid, Fenix compliance, HR rules

Usage:
    # Import specific modules
    from branch_ops.auth import AuthManager
    from branch_ops.store import BranchDataStore
    from branch_ops.config import config

    # Or import commonly used items directly
    from branch_ops import AuthManager, BranchDataStore, config
"""

# Authentication
from .auth import (
    AuthError,
    AuthManager,
    require_login,
    require_roles,
)

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    SUPABASE_CONFIG,
    APP_CONFIG,
)

# Backend
from .db import (
    BackendClient,
    BackendError,
    get_supabase_client,
    reset_supabase_client,
    check_backend_connection,
)

# Data
from .models import ValidationError
from .store import BranchDataStore

__all__ = [
    # Auth
    'AuthError',
    'AuthManager',
    'require_login',
    'require_roles',

    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'SUPABASE_CONFIG',
    'APP_CONFIG',

    # Backend
    'BackendClient',
    'BackendError',
    'get_supabase_client',
    'reset_supabase_client',
    'check_backend_connection',

    # Data
    'ValidationError',
    'BranchDataStore',
]

__version__ = '1.0.0'
