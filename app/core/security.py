from fastapi import Header, HTTPException

from app.core.config import get_settings


def api_key_auth(x_api_key: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def current_user_id(x_user_id: int = Header(default=1)) -> int:
    # Session handling lives in front of this service; the caller passes the acting user.
    return x_user_id
