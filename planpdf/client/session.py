"""
Bearer session handling for API clients.

One provider owns the session: a stored, unexpired session is used as-is;
otherwise the identity provider is asked and its answer is written
through to the store.
"""
import json
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Awaitable, Callable

from planpdf.logging_config import logger


@dataclass
class Session:
    """An issued bearer session."""
    access_token: str
    expires_at: float | None = None  # epoch seconds
    user_id: str | None = None
    email: str | None = None

    def is_valid(self, now: float) -> bool:
        return bool(self.access_token) and (self.expires_at is None or self.expires_at > now)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "Session":
        """
        Raises:
            ValueError: if raw is not a stored session
        """
        try:
            data = json.loads(raw)
            return cls(
                access_token=str(data["access_token"]),
                expires_at=float(data["expires_at"]) if data.get("expires_at") is not None else None,
                user_id=data.get("user_id"),
                email=data.get("email"),
            )
        except (KeyError, TypeError, AttributeError, json.JSONDecodeError) as e:
            raise ValueError(f"Corrupt stored session: {e}") from e


class MemorySessionStore:
    """Keeps the serialized session in memory."""

    def __init__(self, value: str | None = None):
        self.value = value

    def get(self) -> str | None:
        return self.value

    def set(self, value: str) -> None:
        self.value = value

    def delete(self) -> None:
        self.value = None


class FileSessionStore:
    """Keeps the serialized session in a file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def set(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(value, encoding="utf-8")

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionProvider:
    """
    Single source of truth for the current session.

    Args:
        store: Object with get/set/delete of a serialized session
        fetch_remote: Async callable returning the identity provider's
            current session, or None when signed out
        sign_out_remote: Optional async callable ending the remote session
    """

    def __init__(
        self,
        store,
        fetch_remote: Callable[[], Awaitable[Session | None]],
        sign_out_remote: Callable[[], Awaitable[None]] | None = None,
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.fetch_remote = fetch_remote
        self.sign_out_remote = sign_out_remote
        self.clock = clock

    def _stored(self) -> Session | None:
        raw = self.store.get()
        if not raw:
            return None
        try:
            session = Session.from_json(raw)
        except ValueError as e:
            logger.warning("stored_session_discarded", reason=str(e))
            self.store.delete()
            return None
        if not session.is_valid(self.clock()):
            logger.info("stored_session_expired")
            self.store.delete()
            return None
        return session

    async def get_session(self) -> Session | None:
        """Return the active session, or None when signed out."""
        session = self._stored()
        if session is not None:
            return session

        remote = await self.fetch_remote()
        if remote is None or not remote.is_valid(self.clock()):
            return None

        self.store.set(remote.to_json())
        return remote

    async def clear(self) -> None:
        """Forget the stored session and end the remote one."""
        self.store.delete()
        if self.sign_out_remote is not None:
            await self.sign_out_remote()
