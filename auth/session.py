from __future__ import annotations

import logging
from typing import Any, Callable

from api import HubApi, RequestError
from domain import DecodeError, Profile, SessionUser

logger = logging.getLogger(__name__)

Listener = Callable[["SessionContext"], None]


class SessionContext:
    """Current user and profile, handed explicitly to every view-model."""

    def __init__(self, api: HubApi) -> None:
        self.api = api
        self.user: SessionUser | None = None
        self.profile: Profile | None = None
        self.loading = False
        self.error: str | None = None
        self._listeners: list[Listener] = []

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str | None:
        return self.user.user_id if self.user else None

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.display_name:
            return self.profile.display_name
        if self.user is None:
            return "User"
        metadata = self.user.user_metadata
        for key in ("full_name", "name"):
            value = metadata.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return self.user.email or "User"

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def refresh(self) -> SessionUser | None:
        self.loading = True
        self.error = None
        self._notify()
        try:
            try:
                user = await self.api.current_user()
            except RequestError as exc:
                if not exc.is_unauthorized:
                    raise
                user = None
            profile = await self._load_profile() if user is not None else None
        except (RequestError, DecodeError) as exc:
            logger.info("session.refresh.failed error=%s", exc)
            self.error = str(exc) or "Unable to load session"
            user, profile = None, None
        self.user = user
        self.profile = profile
        self.loading = False
        self._notify()
        return user

    async def _load_profile(self) -> Profile | None:
        try:
            return await self.api.get_profile()
        except RequestError as exc:
            if exc.status in {401, 404}:
                return None
            raise

    async def login_email(self, email: str, password: str) -> bool:
        self.error = None
        try:
            await self.api.login_email(email, password)
        except RequestError as exc:
            logger.info("session.login.failed status=%s", exc.status)
            self.error = str(exc) or "Login failed"
            self._notify()
            return False
        await self.refresh()
        return self.signed_in

    async def update_account(self, fields: dict[str, Any]) -> bool:
        """PATCH the account (avatar data URL, profile fields), then reload."""
        if avatar := fields.get("avatar"):
            if not str(avatar).startswith("data:image"):
                self.error = "Avatar must be an image data URL"
                self._notify()
                return False
        self.error = None
        try:
            await self.api.update_account(fields)
        except RequestError as exc:
            logger.info("session.update_account.failed status=%s", exc.status)
            self.error = str(exc) or "Unable to update profile"
            self._notify()
            return False
        await self.refresh()
        return True

    def sign_out(self) -> None:
        self.user = None
        self.profile = None
        self.error = None
        self._notify()
