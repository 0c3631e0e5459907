from typing import Any, Dict, List, Optional

from application.dto.folder_dto import FolderDTO
from application.dto.image_dto import ImageDTO
from application.dto.page_dto import PageDTO
from application.dto.ping_dto import PingResultDTO
from application.dto.tag_dto import TagDTO
from application.dto.user_dto import AuthResultDTO, UserDTO, UserStatsDTO
from domain.model.image_asset import ImageAsset


class GalleryClientPort:
    # ---- auth ---------------------------------------------------------
    def register(self, name: str, email: str, password: str, password_confirmation: str) -> AuthResultDTO:
        raise NotImplementedError

    def login(self, email: str, password: str) -> AuthResultDTO:
        raise NotImplementedError

    def logout(self) -> None:
        raise NotImplementedError

    def get_current_user(self) -> UserDTO:
        raise NotImplementedError

    # ---- pastas -------------------------------------------------------
    def list_folders(self, page: int = 1, sort: str = "date_desc", limit: int = 20) -> PageDTO[FolderDTO]:
        """Lista as pastas ativas (não excluídas), paginadas."""
        raise NotImplementedError

    def get_folder(self, folder_id: int) -> FolderDTO:
        raise NotImplementedError

    def create_folder(self, name: str, color: Optional[str] = None, description: Optional[str] = None) -> FolderDTO:
        raise NotImplementedError

    def update_folder(self, folder_id: int, data: Dict[str, Any]) -> FolderDTO:
        raise NotImplementedError

    def delete_folder(self, folder_id: int) -> None:
        """Move a pasta para a lixeira."""
        raise NotImplementedError

    def toggle_favorite_folder(self, folder_id: int) -> None:
        raise NotImplementedError

    def list_favorite_folders(self) -> List[FolderDTO]:
        raise NotImplementedError

    def list_trashed_folders(self) -> List[FolderDTO]:
        raise NotImplementedError

    def restore_folder(self, folder_id: int) -> None:
        raise NotImplementedError

    def force_delete_folder(self, folder_id: int) -> None:
        raise NotImplementedError

    # ---- imagens ------------------------------------------------------
    def list_images(self, page: int = 1, sort: str = "date_desc", limit: int = 20) -> PageDTO[ImageDTO]:
        raise NotImplementedError

    def list_folder_images(
        self, folder_id: int, page: int = 1, sort: str = "date_desc", limit: int = 20
    ) -> PageDTO[ImageDTO]:
        raise NotImplementedError

    def get_image(self, image_id: int) -> ImageDTO:
        raise NotImplementedError

    def upload_image(self, asset: ImageAsset, folder_id: int, name: str) -> ImageDTO:
        """Envia a imagem como multipart (`image` + `folder_id` + `name`)."""
        raise NotImplementedError

    def update_image(self, image_id: int, data: Dict[str, Any]) -> ImageDTO:
        raise NotImplementedError

    def delete_image(self, image_id: int) -> None:
        raise NotImplementedError

    def toggle_favorite_image(self, image_id: int) -> None:
        raise NotImplementedError

    def list_favorite_images(self, page: int = 1, sort: str = "date_desc", limit: int = 20) -> PageDTO[ImageDTO]:
        raise NotImplementedError

    def list_trashed_images(self) -> List[ImageDTO]:
        raise NotImplementedError

    def restore_image(self, image_id: int) -> None:
        raise NotImplementedError

    def force_delete_image(self, image_id: int) -> None:
        raise NotImplementedError

    # ---- perfil -------------------------------------------------------
    def get_profile(self) -> UserDTO:
        raise NotImplementedError

    def update_profile(self, data: Dict[str, Any]) -> UserDTO:
        raise NotImplementedError

    def upload_avatar(self, asset: ImageAsset) -> UserDTO:
        raise NotImplementedError

    def get_user_stats(self) -> UserStatsDTO:
        raise NotImplementedError

    # ---- tags ---------------------------------------------------------
    def list_tags(self) -> List[TagDTO]:
        raise NotImplementedError

    def get_tag(self, tag_id: int) -> TagDTO:
        raise NotImplementedError

    def create_tag(self, name: str, color: Optional[str] = None) -> TagDTO:
        raise NotImplementedError

    def update_tag(self, tag_id: int, data: Dict[str, Any]) -> TagDTO:
        raise NotImplementedError

    def delete_tag(self, tag_id: int) -> None:
        raise NotImplementedError

    def list_tag_folders(self, tag_id: int) -> List[FolderDTO]:
        raise NotImplementedError

    def list_tag_images(self, tag_id: int) -> List[ImageDTO]:
        raise NotImplementedError

    # ---- diagnóstico --------------------------------------------------
    def ping(self, url: Optional[str] = None) -> PingResultDTO:
        """HEAD no servidor, com fallback para GET."""
        raise NotImplementedError
