from __future__ import annotations

from typing import Any, Optional


class GalleryError(Exception):
    """Erro base; `message` é o texto exibido ao usuário."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GalleryApiError(GalleryError):
    """O servidor respondeu com status de erro."""

    def __init__(
        self,
        message: str,
        status_code: int,
        payload: Optional[Any] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
        self.url = url


class GalleryAuthError(GalleryApiError):
    """401: sessão inválida ou expirada."""


class GalleryNetworkError(GalleryError):
    """Nenhuma resposta do servidor (conexão recusada, timeout...)."""

    def __init__(self, message: str, url: Optional[str] = None, timeout: bool = False) -> None:
        super().__init__(message)
        self.url = url
        self.timeout = timeout


class ImagePreparationError(GalleryError):
    pass


class InvalidUploadError(GalleryError):
    pass
