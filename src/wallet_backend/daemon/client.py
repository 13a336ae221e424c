"""Daemon HTTP client - connection handshake and height queries.

Synchronous HTTP client for the two daemon endpoints the wallet needs:
- GET /getinfo   - handshake, confirms the daemon is reachable and synced info
- GET /getheight - local and network block heights

The handshake runs on a helper thread and reports through a callback, so the
caller decides how (and whether) to wait for it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from wallet_backend.errors.daemon_errors import DaemonError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class DaemonInfo:
    """Subset of ``/getinfo`` the wallet cares about."""

    height: int
    network_height: int
    synced: bool
    version: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DaemonInfo:
        return cls(
            height=int(data.get("height", 0)),
            network_height=int(data.get("network_height", 0)),
            synced=bool(data.get("synced", False)),
            version=str(data.get("version", "")),
        )


class DaemonClient:
    """HTTP client for a remote daemon.

    Usage::

        daemon = DaemonClient("127.0.0.1", 11898)
        daemon.init(lambda outcome: print("failed" if outcome else "ok"))
        ...
        height, network_height = daemon.get_height()
        daemon.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the daemon client.

        Args:
            host: Daemon hostname or IP.
            port: Daemon RPC port.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._host = host
        self._port = port
        self._client: httpx.Client | None = httpx.Client(
            base_url=f"http://{host}:{port}",
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._info: DaemonInfo | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_connected(self) -> bool:
        """True once the handshake has succeeded and the client is open."""
        return self._client is not None and self._info is not None

    @property
    def info(self) -> DaemonInfo | None:
        """Result of the last successful handshake."""
        return self._info

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    def init(self, on_complete: Callable[[DaemonError | None], None]) -> None:
        """Start the connection handshake on a helper thread.

        *on_complete* fires exactly once, with ``None`` on success or the
        ``DaemonError`` describing the failure.
        """

        def _run() -> None:
            try:
                self._info = self.get_info()
            except DaemonError as exc:
                logger.warning(
                    "Daemon handshake with %s:%d failed: %s", self._host, self._port, exc
                )
                on_complete(exc)
                return
            except Exception as exc:
                logger.exception("Daemon handshake with %s:%d crashed", self._host, self._port)
                on_complete(DaemonError(f"Daemon handshake failed: {exc}"))
                return
            on_complete(None)

        threading.Thread(target=_run, name="daemon-init", daemon=True).start()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_info(self) -> DaemonInfo:
        """Fetch ``/getinfo``.

        Raises:
            DaemonError: On HTTP, transport or decoding errors.
        """
        data = self._get_json("/getinfo")
        try:
            return DaemonInfo.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise DaemonError(f"Daemon returned malformed /getinfo: {exc}") from exc

    def get_height(self) -> tuple[int, int]:
        """Fetch ``(height, network_height)`` from ``/getheight``.

        Raises:
            DaemonError: On HTTP, transport or decoding errors.
        """
        data = self._get_json("/getheight")
        try:
            return int(data.get("height", 0)), int(data.get("network_height", 0))
        except (TypeError, ValueError) as exc:
            raise DaemonError(f"Daemon returned malformed /getheight: {exc}") from exc

    def close(self) -> None:
        """Close the underlying HTTP client (idempotent)."""
        if self._client is not None:
            self._client.close()
            self._client = None
        self._info = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_json(self, path: str) -> dict[str, Any]:
        client = self._ensure_open()
        try:
            response = client.get(path)
        except httpx.HTTPError as exc:
            raise DaemonError(f"Daemon request {path} failed: {exc}") from exc
        if response.status_code != 200:
            raise DaemonError(
                f"Daemon returned {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise DaemonError(f"Daemon returned invalid JSON for {path}") from exc
        if not isinstance(data, dict):
            raise DaemonError(f"Daemon returned unexpected payload for {path}")
        return data

    def _ensure_open(self) -> httpx.Client:
        if self._client is None:
            msg = "DaemonClient is closed"
            raise DaemonError(msg)
        return self._client
