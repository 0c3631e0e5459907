from __future__ import annotations

from typing import Optional

import structlog

from application.dto.user_dto import AuthResultDTO, UserDTO
from domain.errors import GalleryError
from ports.gallery_client import GalleryClientPort
from ports.persistence import TokenStorePort

logger = structlog.get_logger(__name__).bind(use_case="manage_session")


class AuthSession:
    """
    Sessão autenticada do usuário: token persistido + usuário corrente.
    """

    def __init__(self, gallery_client: GalleryClientPort, token_store: TokenStorePort) -> None:
        self.gallery_client = gallery_client
        self.token_store = token_store
        self.user: Optional[UserDTO] = None
        self.token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    def restore(self) -> Optional[UserDTO]:
        """Recarrega a sessão a partir do token salvo; falhas deixam a sessão deslogada."""
        token = self.token_store.get_token()
        if not token:
            logger.info("session.restore.no_token")
            return None

        self.token = token
        try:
            self.user = self.gallery_client.get_current_user()
        except GalleryError as exc:
            logger.warning("session.restore.error", reason=exc.message)
            self.user = None
            # num 401 o cliente já apagou o token salvo
            self.token = self.token_store.get_token()
            return None

        logger.info("session.restore.success", user_id=self.user.id)
        return self.user

    def login(self, email: str, password: str) -> AuthResultDTO:
        result = self.gallery_client.login(email, password)
        self._store(result)
        logger.info("session.login.success", user_id=result.user.id)
        return result

    def register(self, name: str, email: str, password: str, password_confirmation: str) -> AuthResultDTO:
        result = self.gallery_client.register(name, email, password, password_confirmation)
        self._store(result)
        logger.info("session.register.success", user_id=result.user.id)
        return result

    def logout(self) -> None:
        """Logout no servidor é best-effort; o estado local é sempre limpo."""
        try:
            if self.token_store.get_token():
                self.gallery_client.logout()
        except GalleryError as exc:
            logger.warning("session.logout.server_error", reason=exc.message)
        finally:
            self.user = None
            self.token = None
            self.token_store.delete_token()
            logger.info("session.logout")

    def _store(self, result: AuthResultDTO) -> None:
        self.user = result.user
        self.token = result.token
        self.token_store.set_token(result.token)
