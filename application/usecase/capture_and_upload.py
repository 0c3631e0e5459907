from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Optional

import structlog

from adapters.scheduling.safety_timer import ThreadingSafetyTimer
from application.dto.image_dto import ImageDTO
from config.settings import UPLOAD_SAFETY_TIMEOUT_SEC
from domain.errors import GalleryError, InvalidUploadError
from domain.model.image_asset import ImageAsset
from domain.model.upload_state import UploadState, can_transition
from domain.service.image_preparation import ImagePreparationService
from ports.gallery_client import GalleryClientPort
from ports.scheduler import TimerFactory, TimerPort

logger = structlog.get_logger(__name__).bind(use_case="capture_and_upload")

# Fonte de imagem: câmera ou galeria. None => usuário cancelou.
ImageSource = Callable[[], Optional[ImageAsset]]


class UploadSession:
    """
    Fluxo de captura -> preparo -> pré-visualização -> upload de uma tela.

    Uma operação por vez: chamar `capture`, `pick` ou `upload` enquanto
    outra está em andamento não tem efeito. Cada estado em andamento arma
    um timer de segurança que devolve a sessão para IDLE se ela travar;
    o timer não cancela a requisição em curso.
    """

    def __init__(
        self,
        gallery_client: GalleryClientPort,
        preparation: ImagePreparationService,
        folder_id: Optional[int],
        timer_factory: TimerFactory = ThreadingSafetyTimer,
        safety_timeout: float = UPLOAD_SAFETY_TIMEOUT_SEC,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.gallery_client = gallery_client
        self.preparation = preparation
        self.folder_id = folder_id
        self.timer_factory = timer_factory
        self.safety_timeout = safety_timeout
        self.clock = clock

        self._lock = threading.Lock()
        self._state = UploadState.IDLE
        self._asset: Optional[ImageAsset] = None
        self._uploaded: Optional[ImageDTO] = None
        self._op = 0
        self._timer: Optional[TimerPort] = None
        self._log = logger.bind(folder_id=folder_id)

    # ------------------------------------------------------------------ #
    #  Estado                                                            #
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def asset(self) -> Optional[ImageAsset]:
        return self._asset

    @property
    def uploaded(self) -> Optional[ImageDTO]:
        return self._uploaded

    # ------------------------------------------------------------------ #
    #  API pública                                                       #
    # ------------------------------------------------------------------ #
    def capture(self, camera: ImageSource) -> Optional[ImageAsset]:
        return self._acquire(UploadState.CAPTURING, camera, "Failed to take picture")

    def pick(self, gallery: ImageSource) -> Optional[ImageAsset]:
        return self._acquire(UploadState.PICKING, gallery, "Failed to pick image from gallery")

    def discard(self) -> None:
        """Descarta a imagem em pré-visualização."""
        with self._lock:
            if self._state is not UploadState.PREVIEWING:
                self._log.warning("upload.discard.ignored", state=self._state.value)
                return
            self._set_state(UploadState.IDLE)
            self._asset = None
            self._log.info("upload.discard")

    def upload(self, name: Optional[str] = None) -> Optional[ImageDTO]:
        with self._lock:
            if self._state.in_flight:
                self._log.warning("upload.guard.busy", state=self._state.value)
                return None
            if self._asset is None or self._state is not UploadState.PREVIEWING:
                raise InvalidUploadError("No image to upload")
            if not self.folder_id:
                raise InvalidUploadError("Folder ID is missing. Cannot upload image.")
            op = self._begin(UploadState.UPLOADING)
            asset = self._asset

        image_name = name or f"Image {self.clock().strftime('%Y-%m-%d %H:%M:%S')}"
        log = self._log.bind(op=op, name=image_name)
        log.info("upload.start", file_size=asset.file_size)

        try:
            image = self.gallery_client.upload_image(asset, self.folder_id, image_name)
        except GalleryError as exc:
            log.error("upload.error", reason=exc.message)
            self._advance(op, UploadState.PREVIEWING)
            raise GalleryError(f"Failed to upload image: {exc.message}") from exc
        except Exception:
            log.exception("upload.error")
            self._advance(op, UploadState.PREVIEWING)
            raise

        if self._advance(op, UploadState.DONE):
            self._uploaded = image
            self._asset = None
        log.info("upload.success", image_id=image.id)
        return image

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #
    def _acquire(self, target: UploadState, source: ImageSource, error_prefix: str) -> Optional[ImageAsset]:
        with self._lock:
            if self._state.in_flight:
                self._log.warning("upload.guard.busy", state=self._state.value, requested=target.value)
                return None
            if not can_transition(self._state, target):
                self._log.warning("upload.guard.invalid", state=self._state.value, requested=target.value)
                return None
            op = self._begin(target)

        log = self._log.bind(op=op, source=target.value)
        try:
            raw = source()
        except Exception as exc:
            log.exception("upload.acquire.error")
            self._advance(op, UploadState.IDLE)
            raise GalleryError(f"{error_prefix}: {exc}") from exc

        if raw is None:
            log.info("upload.acquire.cancelled")
            self._advance(op, UploadState.IDLE)
            return None

        if not self._advance(op, UploadState.PROCESSING):
            return None

        try:
            prepared = self.preparation.prepare(raw)
        except GalleryError:
            self._advance(op, UploadState.IDLE)
            raise

        with self._lock:
            if op != self._op:
                log.warning("upload.late_completion", step="processing")
                return None
            self._set_state(UploadState.PREVIEWING)
            self._asset = prepared
        log.info("upload.preview.ready", uri=prepared.uri, file_size=prepared.file_size)
        return prepared

    def _begin(self, target: UploadState) -> int:
        # chamado com o lock adquirido
        self._op += 1
        self._set_state(target)
        self._arm_timer(self._op, target)
        return self._op

    def _advance(self, op: int, target: UploadState) -> bool:
        with self._lock:
            if op != self._op:
                self._log.warning("upload.late_completion", op=op, target=target.value)
                return False
            self._set_state(target)
            if target.in_flight:
                self._arm_timer(op, target)
            return True

    def _set_state(self, target: UploadState) -> None:
        if not can_transition(self._state, target):
            raise RuntimeError(f"invalid upload transition {self._state.value} -> {target.value}")
        self._cancel_timer()
        self._log.debug("upload.transition", src=self._state.value, dst=target.value)
        self._state = target

    def _arm_timer(self, op: int, state: UploadState) -> None:
        self._timer = self.timer_factory(self.safety_timeout, lambda: self._on_timeout(op, state))
        self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self, op: int, state: UploadState) -> None:
        with self._lock:
            if op != self._op or self._state is not state:
                return
            self._log.warning("upload.safety_timeout", op=op, state=state.value, seconds=self.safety_timeout)
            self._timer = None
            self._state = UploadState.IDLE
            self._asset = None
            # invalida a operação em curso; a conclusão tardia será ignorada
            self._op += 1
