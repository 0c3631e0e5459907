import os
from pathlib import Path

# --- Configurações ---
def _float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default

def _int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default

# --- Servidor ---
API_HOST = os.getenv("GALLERY_API_HOST", "localhost:8000")
API_PROTOCOL = os.getenv("GALLERY_API_PROTOCOL", "http")
BASE_URL = f"{API_PROTOCOL}://{API_HOST}"
API_URL = f"{BASE_URL}/api/"

HTTP_CONNECT_TIMEOUT = _float("HTTP_CONNECT_TIMEOUT", 3.05)
HTTP_READ_TIMEOUT = _float("HTTP_READ_TIMEOUT", 30)
# Nenhuma repetição automática: retry é sempre iniciado pelo usuário
HTTP_MAX_RETRIES = _int("HTTP_MAX_RETRIES", 0)

DEFAULT_PAGE_SIZE = 20
DEFAULT_SORT = "date_desc"
SORT_OPTIONS = ("name_asc", "name_desc", "date_desc", "date_asc")

# --- Upload de imagens ---
UPLOAD_SIZE_THRESHOLD_BYTES = _int("UPLOAD_SIZE_THRESHOLD_BYTES", int(1.9 * 1024 * 1024))
UPLOAD_MAX_DIMENSION = _int("UPLOAD_MAX_DIMENSION", 1200)
UPLOAD_SAFETY_TIMEOUT_SEC = _float("UPLOAD_SAFETY_TIMEOUT_SEC", 5)

AVATAR_SIZE = _int("AVATAR_SIZE", 400)
AVATAR_QUALITY = _float("AVATAR_QUALITY", 0.7)

# --- Estado local ---
STATE_DIR = Path(os.getenv("GALLERY_STATE_DIR", Path.home() / ".gallery_client"))
STATE_DB_URL = os.getenv("GALLERY_STATE_DB_URL", f"sqlite:///{STATE_DIR / 'state.db'}")
TMP_DIR = Path(os.getenv("GALLERY_TMP_DIR", STATE_DIR / "tmp_upload"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
