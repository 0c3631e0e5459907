from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import structlog

from application.dto.folder_dto import FolderDTO
from application.dto.image_dto import ImageDTO
from domain.errors import GalleryApiError, GalleryError
from ports.gallery_client import GalleryClientPort

logger = structlog.get_logger(__name__).bind(use_case="manage_trash")


@dataclass
class TrashView:
    folders: List[FolderDTO] = field(default_factory=list)
    images: List[ImageDTO] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.folders and not self.images


@dataclass
class EmptyTrashReport:
    deleted: List[Tuple[str, int]] = field(default_factory=list)
    failed: List[Tuple[str, int, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class ManageTrash:
    """
    Lixeira: pastas e imagens com `deleted_at` preenchido.
    """

    def __init__(self, gallery_client: GalleryClientPort) -> None:
        self.gallery = gallery_client

    def list(self) -> TrashView:
        try:
            view = TrashView(
                folders=self.gallery.list_trashed_folders(),
                images=self.gallery.list_trashed_images(),
            )
        except GalleryApiError as exc:
            # o backend responde 404 quando a lixeira está vazia
            if exc.status_code == 404:
                logger.info("trash.list.empty", reason="not_found")
                return TrashView()
            raise
        logger.info("trash.list", folders=len(view.folders), images=len(view.images))
        return view

    def restore(self, kind: str, item_id: int) -> None:
        if kind == "folder":
            self.gallery.restore_folder(item_id)
        elif kind == "image":
            self.gallery.restore_image(item_id)
        else:
            raise ValueError(f"unknown trash item kind {kind!r}")
        logger.info("trash.restore", kind=kind, item_id=item_id)

    def purge(self, kind: str, item_id: int) -> None:
        """Exclusão permanente."""
        if kind == "folder":
            self.gallery.force_delete_folder(item_id)
        elif kind == "image":
            self.gallery.force_delete_image(item_id)
        else:
            raise ValueError(f"unknown trash item kind {kind!r}")
        logger.info("trash.purge", kind=kind, item_id=item_id)

    def empty(self) -> EmptyTrashReport:
        # não existe endpoint de esvaziar em lote; apaga item a item
        view = self.list()
        report = EmptyTrashReport()
        items = [("image", i.id) for i in view.images] + [("folder", f.id) for f in view.folders]
        for kind, item_id in items:
            try:
                self.purge(kind, item_id)
                report.deleted.append((kind, item_id))
            except GalleryError as exc:
                logger.warning("trash.empty.item_error", kind=kind, item_id=item_id, reason=exc.message)
                report.failed.append((kind, item_id, exc.message))
        logger.info("trash.empty", deleted=len(report.deleted), failed=len(report.failed))
        return report
