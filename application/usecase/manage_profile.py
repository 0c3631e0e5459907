from __future__ import annotations

from typing import Any, Dict

import structlog

from application.dto.user_dto import UserDTO, UserStatsDTO
from config.settings import AVATAR_QUALITY, AVATAR_SIZE
from domain.errors import GalleryError, ImagePreparationError
from domain.model.image_asset import ImageAsset
from ports.gallery_client import GalleryClientPort
from ports.image_processor import ImageProcessorPort

logger = structlog.get_logger(__name__).bind(use_case="manage_profile")


class ManageProfile:
    def __init__(
        self,
        gallery_client: GalleryClientPort,
        processor: ImageProcessorPort,
        avatar_size: int = AVATAR_SIZE,
        avatar_quality: float = AVATAR_QUALITY,
    ) -> None:
        self.gallery = gallery_client
        self.processor = processor
        self.avatar_size = avatar_size
        self.avatar_quality = avatar_quality

    def profile(self) -> UserDTO:
        return self.gallery.get_profile()

    def stats(self) -> UserStatsDTO:
        """Estatísticas não são críticas: em caso de erro, retorna zeros."""
        try:
            return self.gallery.get_user_stats()
        except GalleryError as exc:
            logger.warning("profile.stats.error", reason=exc.message)
            return UserStatsDTO()

    def update(self, data: Dict[str, Any]) -> UserDTO:
        user = self.gallery.update_profile(data)
        logger.info("profile.update.success", fields=sorted(data))
        return user

    def change_avatar(self, asset: ImageAsset) -> UserDTO:
        """Redimensiona para um quadrado JPEG e envia como avatar."""
        try:
            processed = self.processor.resize(asset, self.avatar_size, self.avatar_size, self.avatar_quality)
        except Exception as exc:
            logger.exception("profile.avatar.process_error", uri=asset.uri)
            raise ImagePreparationError("Failed to process image") from exc

        user = self.gallery.upload_avatar(processed)
        logger.info("profile.avatar.success", file_size=processed.file_size)
        return user
