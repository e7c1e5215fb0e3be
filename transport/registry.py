"""Client for the node directory service that hands out data-plane servers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

logger = logging.getLogger(__name__)


class RegistrationError(RuntimeError):
    """Raised when the directory service does not yield a server address."""


@dataclass(frozen=True)
class Registration:
    node_id: str
    server_address: str


class DirectoryClient:
    """Minimal HTTP client for node registration."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def register_node(self, name: str, channels: Iterable[str]) -> Registration:
        try:
            response = self._client.post(
                "/nodes", json={"name": name, "channels": list(channels)}
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise RegistrationError(
                f"Directory service rejected registration with status "
                f"{exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise RegistrationError(
                f"Directory service {self.base_url} unreachable: {exc}"
            ) from exc
        except ValueError as exc:
            raise RegistrationError("Directory service returned invalid JSON.") from exc

        node_id = payload.get("node_id") if isinstance(payload, dict) else None
        server = payload.get("server_address") if isinstance(payload, dict) else None
        if node_id is None or not isinstance(server, str) or not server:
            raise RegistrationError("Unexpected response payload when registering node.")

        registration = Registration(node_id=str(node_id), server_address=server)
        logger.info(
            "Registered node %s",
            name,
            extra={"node_id": registration.node_id, "server_address": server},
        )
        return registration

    def unregister_node(self, node_id: str) -> None:
        try:
            response = self._client.delete(f"/nodes/{node_id}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Can't unregister node: %s", exc, extra={"node_id": node_id})
            return
        logger.info("Unregistered node", extra={"node_id": node_id})
