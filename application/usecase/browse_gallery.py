from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from application.dto.folder_dto import FolderDTO
from application.dto.image_dto import ImageDTO
from config.settings import DEFAULT_SORT, SORT_OPTIONS
from domain.errors import GalleryApiError, GalleryAuthError
from ports.gallery_client import GalleryClientPort

logger = structlog.get_logger(__name__).bind(use_case="browse_gallery")


@dataclass
class FavoritesView:
    folders: List[FolderDTO] = field(default_factory=list)
    images: List[ImageDTO] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.folders and not self.images


def filter_folders(folders: List[FolderDTO], query: str) -> List[FolderDTO]:
    """Busca local por nome, sem diferenciar maiúsculas."""
    needle = query.strip().lower()
    if not needle:
        return list(folders)
    return [f for f in folders if needle in f.name.lower()]


class BrowseGallery:
    def __init__(self, gallery_client: GalleryClientPort) -> None:
        self.gallery = gallery_client

    def folders(self, sort: str = DEFAULT_SORT, search: Optional[str] = None) -> List[FolderDTO]:
        if sort not in SORT_OPTIONS:
            raise ValueError(f"unknown sort option {sort!r}; expected one of {', '.join(SORT_OPTIONS)}")
        items: List[FolderDTO] = []
        page = 1
        while True:
            result = self.gallery.list_folders(page=page, sort=sort)
            items.extend(result.items)
            if not result.has_next or not result.items:
                break
            page += 1
        logger.info("browse.folders", total=len(items), pages=page, sort=sort)
        return filter_folders(items, search) if search else items

    def favorites(self) -> FavoritesView:
        view = FavoritesView(folders=self.gallery.list_favorite_folders())
        # nem todo servidor expõe images/favorites; as pastas continuam valendo
        try:
            view.images = self.gallery.list_favorite_images().items
        except GalleryAuthError:
            raise
        except GalleryApiError as exc:
            logger.warning("browse.favorites.images_unavailable", status=exc.status_code, reason=exc.message)

        logger.info("browse.favorites", folders=len(view.folders), images=len(view.images))
        return view
