# src/taskboard/storage/identity.py

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

from .jsonfile import read_json_object, write_json_private

logger = logging.getLogger(__name__)


class LocalIdentity:
    """
    Anonymous local identity.

    The owner id comes from (in order):
    - an explicit owner id (settings / env),
    - identity.json from a previous run,
    - a freshly generated id, persisted for the next run.

    owner_id stays None until sign_in() completes; the board waits on it.
    """

    def __init__(self, identity_path: str | Path, *, explicit_owner_id: str | None = None) -> None:
        self._path = Path(identity_path)
        self._explicit = (explicit_owner_id or "").strip() or None
        self._owner_id: str | None = None
        self._ready = asyncio.Event()

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    async def wait_owner_id(self) -> str:
        await self._ready.wait()
        if self._owner_id is None:
            raise RuntimeError("Identity signalled ready without an owner id.")
        return self._owner_id

    async def sign_in(self) -> str:
        if self._owner_id is not None:
            return self._owner_id

        owner_id = self._explicit or await asyncio.to_thread(self._load_or_create)
        self._owner_id = owner_id
        self._ready.set()
        logger.info("Signed in owner_id=%s", owner_id)
        return owner_id

    def _load_or_create(self) -> str:
        if self._path.exists():
            try:
                data = read_json_object(self._path)
                owner_id = str(data.get("owner_id") or "").strip()
                if not owner_id:
                    raise ValueError("identity.json is missing owner_id")
                logger.info("Identity restored from %s", self._path)
                return owner_id
            except (OSError, ValueError) as e:
                logger.warning("Failed to restore identity.json, creating a new one: %r", e)

        owner_id = f"anon-{uuid.uuid4().hex}"
        write_json_private(self._path, {"owner_id": owner_id})
        logger.info("Anonymous identity saved to %s", self._path)
        return owner_id
