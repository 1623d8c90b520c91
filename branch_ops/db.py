# branch_ops/db.py
"""
Backend Connection Management

Version: 1.0.0
Features:
- Singleton Supabase client with thread-safe double-checked locking
- Generic table helpers (fetch / insert / upsert / update / delete)
- Paged reads so large tables are returned whole
- Uniform BackendError carrying status + body for every failed call
"""

import logging
import threading
from typing import Tuple, Optional, Dict, Any, List, Callable

from supabase import create_client, Client

from .config import config

logger = logging.getLogger(__name__)

# PostgREST caps a single response; reads walk the table in pages of this size
PAGE_SIZE = 1000


class BackendError(Exception):
    """Raised when the backend rejects or fails a request."""

    def __init__(self, status: Optional[Any], body: str, table: Optional[str] = None):
        self.status = status
        self.body = body
        self.table = table
        where = f" [{table}]" if table else ""
        super().__init__(f"Backend error{where} ({status}): {body}")


# ==================== SINGLETON CLIENT ====================

_client = None
_client_lock = threading.Lock()


def get_supabase_client() -> Client:
    """
    Get Supabase client (singleton pattern)

    Thread-safe implementation using double-checked locking.
    The client carries the signed-in session, so every table
    call made through it is sent with the user's bearer token.

    Returns:
        supabase Client instance
    """
    global _client

    if _client is None:
        with _client_lock:
            if _client is None:
                _client = _create_client()

    return _client


def _create_client() -> Client:
    """Create new Supabase client with configured settings"""
    backend = config.get_supabase_config()

    if not backend["url"] or not backend["anon_key"]:
        logger.error("Missing required backend configuration")
        raise ValueError("Missing SUPABASE_URL / SUPABASE_ANON_KEY. Please check .env file.")

    logger.info(f"🔌 Creating backend client: {backend['url']}")
    client = create_client(backend["url"], backend["anon_key"])
    logger.info("✅ Backend client created")

    return client


def reset_supabase_client():
    """
    Reset the backend client (drop session and reconnect on next call)

    Call this on logout so the next login starts from a clean client.
    """
    global _client

    with _client_lock:
        _client = None

    logger.info("🔄 Backend client reset - will reconnect on next call")


# ==================== TABLE ACCESS ====================

def _apply_filters(query, filters: Optional[Dict[str, Any]]):
    """Equality filters; a None value matches SQL NULL."""
    for column, value in (filters or {}).items():
        if value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


class BackendClient:
    """
    Thin wrapper over the backend's generic tabular API.

    Rows go in and come out exactly as the backend stores them (snake_case
    columns); entity mapping lives in branch_ops.models.

    Usage:
        backend = BackendClient()
        rows = backend.fetch_all('records')
        backend.upsert('fenix_compliance', [row], on_conflict='advisor_id,date,time_slot')
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        """Lazy load backend client."""
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _execute(self, table: str, action: str, build: Callable[[Any], Any]) -> List[Dict]:
        """Run one request and normalize every failure into BackendError."""
        client = self.client
        try:
            response = build(client.table(table)).execute()
        except Exception as e:
            status = getattr(e, "code", None) or getattr(e, "status", None)
            body = getattr(e, "message", None) or str(e)
            details = getattr(e, "details", None)
            if details:
                body = f"{body} ({details})"
            logger.error(f"❌ {action} on '{table}' failed: {body}")
            raise BackendError(status, body, table=table) from e

        return list(response.data or [])

    # ------------------------------------------------------------------
    # READS
    # ------------------------------------------------------------------

    def fetch_all(
        self,
        table: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict]:
        """
        Fetch every row of a table.

        Args:
            table: Table name
            order_by: Optional column to order by
            descending: Order direction
            filters: Optional equality filters {column: value}

        Returns:
            List of raw row dicts
        """
        rows: List[Dict] = []
        start = 0

        while True:
            def build(query, start=start):
                query = _apply_filters(query.select("*"), filters)
                if order_by:
                    query = query.order(order_by, desc=descending)
                return query.range(start, start + PAGE_SIZE - 1)

            page = self._execute(table, "select", build)
            rows.extend(page)

            if len(page) < PAGE_SIZE:
                break
            start += PAGE_SIZE

        return rows

    # ------------------------------------------------------------------
    # WRITES
    # ------------------------------------------------------------------

    def insert(self, table: str, rows: List[Dict]) -> List[Dict]:
        """Insert one or more rows."""
        if not rows:
            return []
        return self._execute(table, "insert", lambda q: q.insert(rows))

    def upsert(self, table: str, rows: List[Dict], on_conflict: Optional[str] = None) -> List[Dict]:
        """
        Insert or merge rows.

        Args:
            table: Table name
            rows: Rows to write (bulk)
            on_conflict: Comma separated unique columns used for the merge
        """
        if not rows:
            return []

        if on_conflict:
            return self._execute(table, "upsert", lambda q: q.upsert(rows, on_conflict=on_conflict))
        return self._execute(table, "upsert", lambda q: q.upsert(rows))

    def update_by_id(self, table: str, row_id: str, data: Dict) -> List[Dict]:
        """Patch a single row by id."""
        return self._execute(table, "update", lambda q: q.update(data).eq("id", row_id))

    def delete_by_id(self, table: str, row_id: str) -> List[Dict]:
        """Delete a single row by id."""
        return self._execute(table, "delete", lambda q: q.delete().eq("id", row_id))

    def delete_where(self, table: str, filters: Dict[str, Any]) -> List[Dict]:
        """Delete every row matching all equality filters."""
        if not filters:
            raise ValueError("delete_where requires at least one filter")

        def build(query):
            return _apply_filters(query.delete(), filters)

        return self._execute(table, "delete", build)


# ==================== HEALTH CHECK ====================

def check_backend_connection(backend: Optional[BackendClient] = None) -> Tuple[bool, Optional[str]]:
    """
    Check if the backend is reachable

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    backend = backend or BackendClient()
    try:
        backend._execute("profiles", "ping", lambda q: q.select("id").limit(1))
        return True, None
    except BackendError as e:
        logger.error(f"❌ Backend connection failed: {e}")
        return False, "Cannot reach the backend. Please check your network connection."
    except ValueError as e:
        return False, str(e)


__all__ = [
    'PAGE_SIZE',
    'BackendError',
    'BackendClient',
    'get_supabase_client',
    'reset_supabase_client',
    'check_backend_connection',
]
