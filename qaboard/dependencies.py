# qaboard/dependencies.py
import hmac

from fastapi import Depends, Header, Request

from qaboard.config import Settings
from qaboard.errors import Forbidden
from qaboard.services.qa_store import QAStore


def get_store(request: Request) -> QAStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_admin(
    x_admin_key: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Shared-secret check for moderation routes. Never says why it failed."""
    expected = settings.admin_key

    # No configured key means admin routes are closed
    if not expected or not x_admin_key:
        raise Forbidden()

    if not hmac.compare_digest(x_admin_key.encode("utf-8"), expected.encode("utf-8")):
        raise Forbidden()
