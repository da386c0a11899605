# remote.py
"""
Hosted backend: Supabase auth + a PostgREST ``trades`` table.

SupabaseClient wraps one requests.Session and turns every transport or
HTTP failure into StorageUnavailable. The store and identity provider on
top of it are thin.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from .errors import StorageUnavailable
from .interfaces import IdentityProvider, TradeStore
from .models import NewTrade, TradeRecord
from .normalizer import normalize_trade

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class SupabaseClient:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        verbose: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.verbose = verbose
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "apikey": anon_key})

    # ---------- logging ----------
    def _log(self, msg: str) -> None:
        if self.verbose:
            ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            logger.info("[SupabaseClient %s] %s", ts, msg)
        else:
            logger.debug(msg)

    def _headers(self) -> Dict[str, str]:
        token = self.access_token or self.anon_key
        return {"Authorization": f"Bearer {token}"}

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)

        self._log(f"REQUEST {method.upper()} {path} params={params}")
        try:
            r = self.session.request(
                method.upper(), url, params=params, json=payload, headers=headers, timeout=DEFAULT_TIMEOUT
            )
        except requests.Timeout as e:
            self._log(f"Timeout calling {path}")
            raise StorageUnavailable(path, "timeout") from e
        except requests.RequestException as e:
            self._log(f"Network error calling {path}: {e}")
            raise StorageUnavailable(path, f"network error: {e}") from e

        self._log(f"RESPONSE {r.status_code} for {path}")
        if r.status_code >= 400:
            try:
                detail = r.json()
                msg = detail.get("message") or detail.get("msg") if isinstance(detail, dict) else None
            except ValueError:
                msg = None
            raise StorageUnavailable(path, msg or r.text or "HTTP error", r.status_code)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise StorageUnavailable(path, "response was not JSON", r.status_code) from e


class SupabaseIdentity(IdentityProvider):
    """Resolves the signed-in user from the client's access token."""

    def __init__(self, client: SupabaseClient):
        self.client = client
        self._user_id: Optional[str] = None

    def get_current_user(self) -> Optional[str]:
        if self._user_id is not None:
            return self._user_id
        if not self.client.access_token:
            return None
        try:
            data = self.client.request("GET", "/auth/v1/user")
        except StorageUnavailable as e:
            # an expired or rejected token means nobody is signed in
            logger.warning("could not resolve current user: %s", e)
            return None
        if isinstance(data, dict) and data.get("id"):
            self._user_id = str(data["id"])
        return self._user_id


class SupabaseTradeStore(TradeStore):
    TABLE_PATH = "/rest/v1/trades"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def list_trades(self, owner_id: str) -> List[Dict[str, Any]]:
        data = self.client.request(
            "GET",
            self.TABLE_PATH,
            params={"select": "*", "user_id": f"eq.{owner_id}", "order": "id.asc"},
        )
        if not isinstance(data, list):
            raise StorageUnavailable("list_trades", f"unexpected payload: {type(data).__name__}")
        return data

    def insert_trade(self, owner_id: str, trade: NewTrade) -> TradeRecord:
        row = {
            "user_id": owner_id,
            "date": trade.occurred_on.isoformat(),
            "symbol": trade.symbol,
            "type": trade.direction.value,
            "entry": trade.entry_price,
            "exit": trade.exit_price,
            "size": trade.size,
            "stop": trade.stop_price,
            "pnl_usd": trade.pnl(),
            "pnl_percent": trade.pnl_percent(),
            "notes": trade.notes,
        }
        data = self.client.request(
            "POST", self.TABLE_PATH, payload=[row], extra_headers={"Prefer": "return=representation"}
        )
        # PostgREST echoes the inserted rows, including the assigned id
        if isinstance(data, list) and data:
            return normalize_trade(data[0])
        raise StorageUnavailable("insert_trade", "insert returned no row")
