from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config.settings import BASE_URL


def full_image_path(path: Optional[str], base_url: str = BASE_URL) -> Optional[str]:
    """Converte o `path` devolvido pelo backend em URL absoluta."""
    if not path:
        return None
    if path.startswith(("http://", "https://", "file://")):
        return path
    base = base_url.rstrip("/")
    return f"{base}{path}" if path.startswith("/") else f"{base}/{path}"


def endpoint(path: str) -> str:
    # evita `//` ao concatenar com API_URL, que já termina em barra
    return path.lstrip("/")


def unwrap(payload: Any) -> Any:
    """Respostas vêm como `{"data": ...}` ou cruas; aceita as duas."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg
    return default


def page_meta(payload: Dict[str, Any]) -> Dict[str, int]:
    """Metadados de paginação (raiz ou `meta`), com valores padrão."""
    meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else payload
    out = {}
    for key in ("current_page", "last_page", "per_page", "total"):
        value = meta.get(key)
        if isinstance(value, int):
            out[key] = value
    return out
