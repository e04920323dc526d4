"""
PrivateFolio API Client
Session-side counterpart of the server: holds the JWT and the master key,
encrypts positions before they leave the process and decrypts them on read.

Handles:
- Login / registration, deriving the master key from (password, username)
- Write path: quantity and cost_basis are sealed with the session key
- Read path: every stored value is revealed independently; a field that
  cannot be decrypted renders as LOCKED instead of failing the portfolio
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional

import httpx

from privatefolio.crypto import EncryptionSession, FieldView, InvalidInput, SessionLocked, reveal, seal

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(value: Any) -> Optional[float]:
    """Numeric value of a revealed field; legacy rows may hold stringified numbers."""
    if _is_number(value):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        if math.isfinite(number):
            return number
    return None


@dataclass(frozen=True)
class AssetView:
    """One asset with its numeric fields revealed."""
    id: str
    symbol: str
    quantity: FieldView
    cost_basis: FieldView

    @property
    def is_locked(self) -> bool:
        return self.quantity.is_locked or self.cost_basis.is_locked

    @property
    def is_encrypted(self) -> bool:
        return self.quantity.is_encrypted or self.cost_basis.is_encrypted

    @property
    def cost(self) -> Optional[float]:
        """quantity * cost_basis, or None when either side is unreadable."""
        if self.is_locked:
            return None
        quantity = _as_number(self.quantity.value)
        cost_basis = _as_number(self.cost_basis.value)
        if quantity is None or cost_basis is None:
            return None
        return quantity * cost_basis


@dataclass(frozen=True)
class PortfolioView:
    id: str
    name: str
    currency: str
    assets: List[AssetView] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        """Sum of position costs over readable assets"""
        return sum(asset.cost for asset in self.assets if asset.cost is not None)

    @property
    def locked_count(self) -> int:
        return sum(1 for asset in self.assets if asset.is_locked)

    @property
    def unpriced_count(self) -> int:
        """Assets left out of total_cost (locked or not a number)"""
        return sum(1 for asset in self.assets if asset.cost is None)


class PortfolioClient:
    """Talks to the PrivateFolio API on behalf of one user."""

    def __init__(self, http: httpx.Client, strict_writes: bool = False):
        """
        Initialize the client.

        Args:
            http: HTTP client pointed at the API (base_url set)
            strict_writes: Refuse to send plaintext values while locked
        """
        self.http = http
        self.strict_writes = strict_writes
        self.encryption = EncryptionSession()
        self._token: Optional[str] = None
        self._username: Optional[str] = None

    @classmethod
    def connect(cls, base_url: str, timeout: float = 30.0, **kwargs) -> "PortfolioClient":
        return cls(httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout), **kwargs)

    def close(self) -> None:
        self.logout()
        self.http.close()

    def __enter__(self) -> "PortfolioClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ─── Session ────────────────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def username(self) -> Optional[str]:
        return self._username

    def _headers(self) -> dict:
        if self._token is None:
            raise SessionLocked("Not logged in")
        return {"Authorization": f"Bearer {self._token}"}

    def _start_session(self, response: httpx.Response, password: str) -> dict:
        response.raise_for_status()
        data = response.json()
        self._token = data["access_token"]
        self._username = data["user"]["username"]
        # Key derived only after the server accepted the password
        self.encryption.unlock(self._username, password)
        logger.info(f"Session started for {self._username}")
        return data["user"]

    def register(self, username: str, password: str) -> dict:
        response = self.http.post("/api/auth/register", json={"username": username, "password": password})
        return self._start_session(response, password)

    def login(self, username: str, password: str) -> dict:
        response = self.http.post("/api/auth/login", json={"username": username, "password": password})
        return self._start_session(response, password)

    def unlock(self, password: str) -> None:
        """
        Re-derive the master key for the logged-in user.

        A wrong password is not detectable here; encrypted fields will simply
        render as LOCKED until the right one is entered.
        """
        if self._username is None:
            raise SessionLocked("Log in before unlocking")
        self.encryption.unlock(self._username, password)

    def lock(self) -> None:
        self.encryption.lock()

    def logout(self) -> None:
        self.encryption.lock()
        self._token = None
        self._username = None

    # ─── Portfolios ─────────────────────────────────────────────────────

    def list_portfolios(self) -> List[dict]:
        response = self.http.get("/api/portfolios", headers=self._headers())
        response.raise_for_status()
        return response.json()

    def create_portfolio(self, name: str, currency: str = "USD") -> dict:
        response = self.http.post(
            "/api/portfolios",
            json={"name": name, "currency": currency},
            headers=self._headers(),
        )
        response.raise_for_status()
        return response.json()

    def delete_portfolio(self, portfolio_id: str) -> None:
        response = self.http.delete(f"/api/portfolios/{portfolio_id}", headers=self._headers())
        response.raise_for_status()

    def get_portfolio(self, portfolio_id: str) -> PortfolioView:
        """Fetch a portfolio and reveal every asset field with the current key."""
        response = self.http.get(f"/api/portfolios/{portfolio_id}", headers=self._headers())
        response.raise_for_status()
        data = response.json()

        key = self.encryption.key
        assets = [
            AssetView(
                id=asset["id"],
                symbol=asset["symbol"],
                quantity=reveal(asset["quantity"], key, f"{asset['symbol']}.quantity"),
                cost_basis=reveal(asset["cost_basis"], key, f"{asset['symbol']}.cost_basis"),
            )
            for asset in data.get("assets", [])
        ]

        return PortfolioView(id=data["id"], name=data["name"], currency=data["currency"], assets=assets)

    # ─── Assets ─────────────────────────────────────────────────────────

    def add_asset(self, portfolio_id: str, symbol: str, quantity: float, cost_basis: float) -> dict:
        """
        Add a position. Values are encrypted if the session is unlocked,
        otherwise sent as plain numbers (or refused in strict mode).
        """
        for name, value in (("quantity", quantity), ("cost_basis", cost_basis)):
            if not _is_number(value) or not math.isfinite(value):
                raise InvalidInput(f"{name} must be a finite number")

        key = self.encryption.key
        payload = {
            "symbol": symbol,
            "quantity": seal(quantity, key, strict=self.strict_writes),
            "cost_basis": seal(cost_basis, key, strict=self.strict_writes),
        }

        response = self.http.post(
            f"/api/portfolios/{portfolio_id}/assets",
            json=payload,
            headers=self._headers(),
        )
        response.raise_for_status()
        return response.json()

    def delete_asset(self, portfolio_id: str, asset_id: str) -> None:
        response = self.http.delete(
            f"/api/portfolios/{portfolio_id}/assets/{asset_id}",
            headers=self._headers(),
        )
        response.raise_for_status()
