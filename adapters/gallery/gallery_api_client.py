from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests
import structlog
from requests.adapters import HTTPAdapter, Retry

from adapters.gallery.media_utils import (
    endpoint,
    error_message,
    full_image_path,
    page_meta,
    parse_datetime,
    unwrap,
)
from application.dto.folder_dto import UNNAMED_FOLDER, FolderDTO
from application.dto.image_dto import UNTITLED_IMAGE, ImageDTO
from application.dto.page_dto import PageDTO
from application.dto.ping_dto import PingResultDTO
from application.dto.tag_dto import TagDTO
from application.dto.user_dto import AuthResultDTO, UserDTO, UserStatsDTO
from config.settings import (
    API_URL,
    BASE_URL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_RETRIES,
    HTTP_READ_TIMEOUT,
)
from domain.errors import GalleryApiError, GalleryAuthError, GalleryNetworkError
from domain.model.image_asset import ImageAsset
from ports.gallery_client import GalleryClientPort
from ports.persistence import TokenStorePort

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class GalleryApiClient(GalleryClientPort):
    """
    Adaptador da API REST da galeria.
    Todas as requisições passam por uma sessão com timeout e token bearer.
    Produz DTOs prontos para a camada de aplicação.
    """

    _TIMEOUT = (HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT)  # (connect, read)
    _PING_TIMEOUT = 5

    def __init__(
        self,
        token_store: TokenStorePort,
        api_url: str = API_URL,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.token_store = token_store
        self.api_url = api_url.rstrip("/") + "/"
        self.base_url = base_url.rstrip("/")
        self.session = session or self._build_session()

    # --------------------------------------------------------------------- #
    #   Auth                                                                #
    # --------------------------------------------------------------------- #
    def register(self, name: str, email: str, password: str, password_confirmation: str) -> AuthResultDTO:
        data = self._request(
            "POST", "/register", "Registration failed",
            json={
                "name": name,
                "email": email,
                "password": password,
                "password_confirmation": password_confirmation,
            },
        )
        return self._auth_from_api(unwrap(data))

    def login(self, email: str, password: str) -> AuthResultDTO:
        data = self._request("POST", "/login", "Login failed", json={"email": email, "password": password})
        return self._auth_from_api(unwrap(data))

    def logout(self) -> None:
        self._request("POST", "/logout", "Logout failed")

    def get_current_user(self) -> UserDTO:
        return self._user_from_api(self._user_payload(self._request("GET", "/user", "Failed to get user data")))

    # --------------------------------------------------------------------- #
    #   Pastas                                                              #
    # --------------------------------------------------------------------- #
    def list_folders(
        self, page: int = 1, sort: str = DEFAULT_SORT, limit: int = DEFAULT_PAGE_SIZE
    ) -> PageDTO[FolderDTO]:
        log = logger.bind(page=page, sort=sort, limit=limit)
        log.info("gallery.folders.list.start")
        data = self._request(
            "GET", "folders", "Failed to fetch folders",
            params={"page": page, "sort": sort, "limit": limit},
        )
        result = self._page(data, self._folder_from_api, page, limit)
        log.info("gallery.folders.list.success", total=len(result.items))
        return result

    def get_folder(self, folder_id: int) -> FolderDTO:
        data = self._request("GET", f"folders/{folder_id}", "Failed to fetch folder")
        return self._folder_from_api(unwrap(data))

    def create_folder(self, name: str, color: Optional[str] = None, description: Optional[str] = None) -> FolderDTO:
        body: Dict[str, Any] = {"name": name}
        if color:
            body["color"] = color
        if description:
            body["description"] = description
        data = self._request("POST", "folders", "Failed to create folder", json=body)
        folder = self._folder_from_api(unwrap(data))
        logger.info("gallery.folders.create.success", folder_id=folder.id)
        return folder

    def update_folder(self, folder_id: int, data: Dict[str, Any]) -> FolderDTO:
        resp = self._request("PUT", f"folders/{folder_id}", "Failed to update folder", json=data)
        return self._folder_from_api(unwrap(resp))

    def delete_folder(self, folder_id: int) -> None:
        self._request("DELETE", f"folders/{folder_id}", "Failed to delete folder")

    def toggle_favorite_folder(self, folder_id: int) -> None:
        self._request("POST", f"folders/{folder_id}/favorite", "Failed to update favorite status")

    def list_favorite_folders(self) -> List[FolderDTO]:
        data = self._request("GET", "folders/favorites", "Failed to fetch favorite folders")
        return self._items(data, self._folder_from_api)

    def list_trashed_folders(self) -> List[FolderDTO]:
        data = self._request("GET", "folders/trashed", "Failed to fetch trashed folders")
        return self._items(data, self._folder_from_api)

    def restore_folder(self, folder_id: int) -> None:
        self._request("POST", f"folders/{folder_id}/restore", "Failed to restore folder")

    def force_delete_folder(self, folder_id: int) -> None:
        self._request("DELETE", f"folders/{folder_id}/force", "Failed to delete folder")

    # --------------------------------------------------------------------- #
    #   Imagens                                                             #
    # --------------------------------------------------------------------- #
    def list_images(
        self, page: int = 1, sort: str = DEFAULT_SORT, limit: int = DEFAULT_PAGE_SIZE
    ) -> PageDTO[ImageDTO]:
        data = self._request(
            "GET", "images", "Failed to fetch images",
            params={"page": page, "sort": sort, "limit": limit},
        )
        return self._page(data, self._image_from_api, page, limit)

    def list_folder_images(
        self, folder_id: int, page: int = 1, sort: str = DEFAULT_SORT, limit: int = DEFAULT_PAGE_SIZE
    ) -> PageDTO[ImageDTO]:
        log = logger.bind(folder_id=folder_id, page=page)
        log.info("gallery.folder_images.list.start")
        data = self._request(
            "GET", f"folders/{folder_id}/images", "Failed to fetch folder images",
            params={"page": page, "sort": sort, "limit": limit},
        )
        result = self._page(data, self._image_from_api, page, limit)
        log.info("gallery.folder_images.list.success", total=len(result.items))
        return result

    def get_image(self, image_id: int) -> ImageDTO:
        return self._image_from_api(unwrap(self._request("GET", f"images/{image_id}", "Failed to fetch image")))

    def upload_image(self, asset: ImageAsset, folder_id: int, name: str) -> ImageDTO:
        log = logger.bind(folder_id=folder_id, filename=asset.filename, file_size=asset.file_size)
        log.info("gallery.images.upload.start")
        with open(asset.local_path, "rb") as fh:
            data = self._request(
                "POST", "images", "Failed to upload image",
                data={"folder_id": str(folder_id), "name": name},
                files={"image": (asset.filename, fh, asset.mime_type)},
            )
        image = self._image_from_api(unwrap(data))
        log.info("gallery.images.upload.success", image_id=image.id)
        return image

    def update_image(self, image_id: int, data: Dict[str, Any]) -> ImageDTO:
        resp = self._request("PUT", f"images/{image_id}", "Failed to update image", json=data)
        return self._image_from_api(unwrap(resp))

    def delete_image(self, image_id: int) -> None:
        self._request("DELETE", f"images/{image_id}", "Failed to delete image")

    def toggle_favorite_image(self, image_id: int) -> None:
        self._request("POST", f"images/{image_id}/favorite", "Failed to update favorite status")

    def list_favorite_images(
        self, page: int = 1, sort: str = DEFAULT_SORT, limit: int = DEFAULT_PAGE_SIZE
    ) -> PageDTO[ImageDTO]:
        data = self._request(
            "GET", "images/favorites", "Failed to fetch favorite images",
            params={"page": page, "sort": sort, "limit": limit},
        )
        return self._page(data, self._image_from_api, page, limit)

    def list_trashed_images(self) -> List[ImageDTO]:
        data = self._request("GET", "images/trashed", "Failed to fetch trashed images")
        return self._items(data, self._image_from_api)

    def restore_image(self, image_id: int) -> None:
        self._request("POST", f"images/{image_id}/restore", "Failed to restore image")

    def force_delete_image(self, image_id: int) -> None:
        self._request("DELETE", f"images/{image_id}/force", "Failed to delete image")

    # --------------------------------------------------------------------- #
    #   Perfil                                                              #
    # --------------------------------------------------------------------- #
    def get_profile(self) -> UserDTO:
        return self._user_from_api(self._user_payload(self._request("GET", "/profile", "Failed to fetch profile")))

    def update_profile(self, data: Dict[str, Any]) -> UserDTO:
        resp = self._request("PUT", "/profile", "Failed to update profile", json=data)
        return self._user_from_api(self._user_payload(resp))

    def upload_avatar(self, asset: ImageAsset) -> UserDTO:
        with open(asset.local_path, "rb") as fh:
            resp = self._request(
                "POST", "/profile/picture", "Failed to update profile picture",
                files={"avatar": ("profile-picture.jpg", fh, "image/jpeg")},
            )
        return self._user_from_api(self._user_payload(resp))

    def get_user_stats(self) -> UserStatsDTO:
        data = unwrap(self._request("GET", "/profile/stats", "Failed to fetch user stats")) or {}
        return UserStatsDTO(
            folder_count=int(data.get("folderCount", data.get("folder_count")) or 0),
            image_count=int(data.get("imageCount", data.get("image_count")) or 0),
            favorite_count=int(data.get("favoriteCount", data.get("favorite_count")) or 0),
        )

    # --------------------------------------------------------------------- #
    #   Tags                                                                #
    # --------------------------------------------------------------------- #
    def list_tags(self) -> List[TagDTO]:
        return self._items(self._request("GET", "/tags", "Failed to fetch tags"), self._tag_from_api)

    def get_tag(self, tag_id: int) -> TagDTO:
        return self._tag_from_api(unwrap(self._request("GET", f"/tags/{tag_id}", "Failed to fetch tag")))

    def create_tag(self, name: str, color: Optional[str] = None) -> TagDTO:
        body = {"name": name, **({"color": color} if color else {})}
        return self._tag_from_api(unwrap(self._request("POST", "/tags", "Failed to create tag", json=body)))

    def update_tag(self, tag_id: int, data: Dict[str, Any]) -> TagDTO:
        resp = self._request("PUT", f"/tags/{tag_id}", "Failed to update tag", json=data)
        return self._tag_from_api(unwrap(resp))

    def delete_tag(self, tag_id: int) -> None:
        self._request("DELETE", f"/tags/{tag_id}", "Failed to delete tag")

    def list_tag_folders(self, tag_id: int) -> List[FolderDTO]:
        data = self._request("GET", f"/tags/{tag_id}/folders", "Failed to fetch folders with tag")
        return self._items(data, self._folder_from_api)

    def list_tag_images(self, tag_id: int) -> List[ImageDTO]:
        data = self._request("GET", f"/tags/{tag_id}/images", "Failed to fetch images with tag")
        return self._items(data, self._image_from_api)

    # --------------------------------------------------------------------- #
    #   Diagnóstico                                                         #
    # --------------------------------------------------------------------- #
    def ping(self, url: Optional[str] = None) -> PingResultDTO:
        """HEAD é mais leve; se falhar sem resposta, tenta GET."""
        target = url or self.base_url
        log = logger.bind(url=target)
        last_exc: Optional[requests.RequestException] = None

        for method in ("HEAD", "GET"):
            started = time.monotonic()
            try:
                resp = self.session.request(method, target, timeout=self._PING_TIMEOUT)
            except requests.RequestException as exc:
                log.warning("gallery.ping.failed", method=method, reason=str(exc))
                last_exc = exc
                continue
            duration = int((time.monotonic() - started) * 1000)
            log.info("gallery.ping.success", method=method, status=resp.status_code, duration_ms=duration)
            return PingResultDTO(
                success=resp.ok,
                timestamp=datetime.now(timezone.utc),
                method=method,
                status_code=resp.status_code,
                status_text=resp.reason,
                duration_ms=duration,
            )

        return PingResultDTO(
            success=False,
            timestamp=datetime.now(timezone.utc),
            error=str(last_exc),
            is_timeout=isinstance(last_exc, requests.Timeout),
        )

    # --------------------------------------------------------------------- #
    #   Helpers privados                                                    #
    # --------------------------------------------------------------------- #
    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        retry_cfg = Retry(
            total=HTTP_MAX_RETRIES,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_cfg)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.token_store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, default_error: str, **kwargs) -> Any:
        """Requisição com timeout; converte falhas em erros do domínio."""
        url = self.api_url + endpoint(path)
        log = logger.bind(method=method, url=url)
        log.debug("gallery.request")

        try:
            resp = self.session.request(method, url, headers=self._headers(), timeout=self._TIMEOUT, **kwargs)
        except requests.Timeout as exc:
            log.error("gallery.request.no_response", timeout=True, reason=str(exc))
            raise GalleryNetworkError(f"{default_error}: request timed out", url=url, timeout=True) from exc
        except requests.RequestException as exc:
            log.error("gallery.request.no_response", timeout=False, reason=str(exc))
            raise GalleryNetworkError(f"{default_error}: server unreachable", url=url) from exc

        payload = self._json(resp)

        if resp.status_code == 401:
            log.warning("gallery.request.unauthorized")
            self.token_store.delete_token()
            raise GalleryAuthError(error_message(payload, default_error), 401, payload, url)

        if not resp.ok:
            log.error("gallery.request.error_status", status=resp.status_code, response=payload)
            raise GalleryApiError(error_message(payload, default_error), resp.status_code, payload, url)

        return payload

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    @staticmethod
    def _user_payload(data: Any) -> Any:
        inner = unwrap(data)
        if isinstance(inner, dict) and isinstance(inner.get("user"), dict):
            return inner["user"]
        return inner

    @staticmethod
    def _items(data: Any, convert: Callable[[dict], T]) -> List[T]:
        items = unwrap(data)
        if not isinstance(items, list):
            return []
        return [convert(item) for item in items]

    def _page(self, data: Any, convert: Callable[[dict], T], page: int, limit: int) -> PageDTO[T]:
        items = self._items(data, convert)
        meta = page_meta(data) if isinstance(data, dict) else {}
        return PageDTO(
            items=items,
            current_page=meta.get("current_page", page),
            last_page=meta.get("last_page", page),
            per_page=meta.get("per_page", limit),
            total=meta.get("total", len(items)),
        )

    # -------- converters -------------------------------------------------- #
    @staticmethod
    def _folder_from_api(item: dict) -> FolderDTO:
        return FolderDTO(
            id=item["id"],
            name=item.get("name") or UNNAMED_FOLDER,
            color=item.get("color"),
            description=item.get("description"),
            is_favorite=bool(item.get("is_favorite", False)),
            images_count=int(item.get("images_count") or 0),
            created_at=parse_datetime(item.get("created_at")),
            deleted_at=parse_datetime(item.get("deleted_at")),
        )

    def _image_from_api(self, item: dict) -> ImageDTO:
        """Normaliza o `path` para URL absoluta e guarda o original."""
        folder = item.get("folder")
        folder_id = item.get("folder_id")
        if folder_id is None and isinstance(folder, dict):
            folder_id = folder.get("id")

        return ImageDTO(
            id=item["id"],
            name=item.get("name") or UNTITLED_IMAGE,
            path=full_image_path(item.get("path"), self.base_url),
            original_path=item.get("path"),
            folder_id=folder_id,
            is_favorite=bool(item.get("is_favorite", False)),
            created_at=parse_datetime(item.get("created_at")),
            deleted_at=parse_datetime(item.get("deleted_at")),
        )

    def _user_from_api(self, item: dict) -> UserDTO:
        avatar = item.get("avatar") or item.get("profile_picture")
        return UserDTO(
            id=item["id"],
            name=item.get("name", ""),
            email=item.get("email", ""),
            avatar=full_image_path(avatar, self.base_url),
        )

    def _auth_from_api(self, data: dict) -> AuthResultDTO:
        return AuthResultDTO(user=self._user_from_api(data["user"]), token=data["token"])

    @staticmethod
    def _tag_from_api(item: dict) -> TagDTO:
        return TagDTO(id=item["id"], name=item.get("name", ""), color=item.get("color"))
