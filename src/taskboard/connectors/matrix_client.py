# src/taskboard/connectors/matrix_client.py

from __future__ import annotations

"""
Matrix delivery for board notifications.

Send-only: the board never syncs or reads rooms, it posts m.text messages
into the configured room (TASKBOARD_MATRIX_ROOM_ID). Encryption is off, so
that room must be unencrypted.

The first start logs in with TASKBOARD_MATRIX_PASSWORD and saves the session
to <matrix_store_path>/session.json; later starts reuse the saved access token.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from nio import AsyncClient, AsyncClientConfig, LoginResponse

from ..storage.jsonfile import read_json_object, write_json_private

logger = logging.getLogger(__name__)

SESSION_FILE = "session.json"


@dataclass(frozen=True, slots=True)
class MatrixSession:
    user_id: str
    device_id: str
    access_token: str

    @staticmethod
    def load(path: Path) -> MatrixSession | None:
        if not path.exists():
            return None
        try:
            data = read_json_object(path)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable Matrix session %s: %r", path, e)
            return None

        session = MatrixSession(
            user_id=str(data.get("user_id") or ""),
            device_id=str(data.get("device_id") or ""),
            access_token=str(data.get("access_token") or ""),
        )
        if not (session.user_id and session.device_id and session.access_token):
            logger.warning("Ignoring incomplete Matrix session %s", path)
            return None
        return session

    def save(self, path: Path) -> None:
        write_json_private(
            path,
            {"user_id": self.user_id, "device_id": self.device_id, "access_token": self.access_token},
        )

    def apply(self, client: AsyncClient) -> None:
        client.user_id = self.user_id
        client.device_id = self.device_id
        client.access_token = self.access_token


async def create_matrix_client(settings) -> AsyncClient | None:
    """Logged-in client for notification delivery, or None if Matrix can't be used."""
    homeserver = settings.matrix_homeserver.strip()
    user_id = settings.matrix_user_id.strip()
    if not homeserver or not user_id:
        logger.error(
            "Matrix is not configured: set TASKBOARD_MATRIX_HOMESERVER and TASKBOARD_MATRIX_USER_ID"
        )
        return None

    session_path = Path(settings.matrix_store_path) / SESSION_FILE
    client = AsyncClient(homeserver, user_id, config=AsyncClientConfig(encryption_enabled=False))

    session = MatrixSession.load(session_path)
    if session is not None:
        session.apply(client)
        logger.info("Matrix session restored for %s", session.user_id)
        return client

    password = settings.matrix_password.strip()
    if not password:
        logger.error(
            "No saved Matrix session in %s and TASKBOARD_MATRIX_PASSWORD is empty.", session_path
        )
        await client.close()
        return None

    resp = await client.login(password=password, device_name=f"{settings.app_name} notifications")
    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %s", resp)
        await client.close()
        return None

    session = MatrixSession(user_id=resp.user_id, device_id=resp.device_id, access_token=resp.access_token)
    try:
        session.save(session_path)
    except OSError as e:
        # The client still works for this run; the next start will log in again.
        logger.error("Failed to save Matrix session to %s: %r", session_path, e)
    logger.info("Matrix login ok user=%s device=%s", resp.user_id, resp.device_id)
    return client


class MatrixMessenger:
    """OutboundMessenger that posts m.text messages into a Matrix room."""

    def __init__(self, client: AsyncClient, *, default_room_id: str) -> None:
        self._client = client
        self._default_room_id = default_room_id

    async def send_text(
        self,
        *,
        text: str,
        room_id: str | None = None,
        to_user_id: str | None = None,
    ) -> None:
        target = (room_id or self._default_room_id or "").strip()
        if not target:
            logger.warning("Matrix send skipped: no room configured.")
            return

        await self._client.room_send(
            room_id=target,
            message_type="m.room.message",
            content={"msgtype": "m.text", "body": text},
            ignore_unverified_devices=True,
        )

    async def close(self) -> None:
        await self._client.close()
