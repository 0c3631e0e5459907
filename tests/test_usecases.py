from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from application.dto.folder_dto import FolderDTO
from application.dto.image_dto import ImageDTO
from application.dto.page_dto import PageDTO
from application.dto.user_dto import AuthResultDTO, UserDTO, UserStatsDTO
from application.usecase.browse_gallery import BrowseGallery, filter_folders
from application.usecase.manage_preferences import Preferences
from application.usecase.manage_profile import ManageProfile
from application.usecase.manage_session import AuthSession
from application.usecase.manage_trash import ManageTrash
from domain.errors import GalleryApiError, GalleryAuthError, GalleryNetworkError, ImagePreparationError
from domain.model.image_asset import ImageAsset
from domain.model.theme import Theme

USER = UserDTO(id=1, name="Ana", email="ana@x.io")


class InMemoryStore:
    def __init__(self):
        self.token = None
        self.values = {}

    def get_token(self):
        return self.token

    def set_token(self, token):
        self.token = token

    def delete_token(self):
        self.token = None

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value


class TestAuthSession:

    def test_login_persists_token(self):
        client, store = Mock(), InMemoryStore()
        client.login.return_value = AuthResultDTO(user=USER, token="t-1")

        AuthSession(client, store).login("ana@x.io", "pw")

        assert store.token == "t-1"

    def test_restore_loads_current_user(self):
        client, store = Mock(), InMemoryStore()
        store.token = "t-1"
        client.get_current_user.return_value = USER

        session = AuthSession(client, store)

        assert session.restore() == USER
        assert session.is_authenticated

    def test_restore_without_token_skips_request(self):
        client = Mock()
        session = AuthSession(client, InMemoryStore())

        assert session.restore() is None
        client.get_current_user.assert_not_called()

    def test_restore_with_expired_token_logs_out(self):
        client, store = Mock(), InMemoryStore()
        store.token = "expired"

        def unauthorized():
            store.delete_token()  # como o cliente HTTP faz num 401
            raise GalleryAuthError("Unauthenticated.", 401)

        client.get_current_user.side_effect = unauthorized
        session = AuthSession(client, store)

        assert session.restore() is None
        assert session.token is None
        assert not session.is_authenticated

    def test_logout_clears_state_even_if_server_fails(self):
        client, store = Mock(), InMemoryStore()
        store.token = "t-1"
        client.logout.side_effect = GalleryNetworkError("Logout failed: server unreachable")
        session = AuthSession(client, store)
        session.user, session.token = USER, "t-1"

        session.logout()

        assert store.token is None
        assert session.user is None


class TestPreferences:

    def test_theme_defaults_to_light_and_toggles(self):
        store = InMemoryStore()
        prefs = Preferences(store)

        assert prefs.theme is Theme.LIGHT
        assert prefs.toggle_theme() is Theme.DARK
        assert store.values["theme"] == "dark"
        assert prefs.toggle_theme() is Theme.LIGHT

    def test_first_launch_flag(self):
        prefs = Preferences(InMemoryStore())

        assert prefs.is_first_launch()
        prefs.mark_onboarded()
        assert not prefs.is_first_launch()


class TestBrowseGallery:

    def test_folders_walks_all_pages(self):
        client = Mock()
        client.list_folders.side_effect = [
            PageDTO(items=[FolderDTO(id=1, name="A")], current_page=1, last_page=2),
            PageDTO(items=[FolderDTO(id=2, name="B")], current_page=2, last_page=2),
        ]

        folders = BrowseGallery(client).folders(sort="name_asc")

        assert [f.id for f in folders] == [1, 2]
        assert client.list_folders.call_args.kwargs == {"page": 2, "sort": "name_asc"}

    def test_unknown_sort_is_rejected(self):
        with pytest.raises(ValueError):
            BrowseGallery(Mock()).folders(sort="size")

    def test_search_is_case_insensitive(self):
        folders = [FolderDTO(id=1, name="Summer Trip"), FolderDTO(id=2, name="Work")]

        assert [f.id for f in filter_folders(folders, "  TRIP ")] == [1]
        assert filter_folders(folders, "") == folders

    def test_favorites_combines_folders_and_images(self):
        client = Mock()
        client.list_favorite_folders.return_value = [FolderDTO(id=1)]
        client.list_favorite_images.return_value = PageDTO(items=[ImageDTO(id=5)])

        view = BrowseGallery(client).favorites()

        assert not view.is_empty
        assert [i.id for i in view.images] == [5]

    def test_favorite_images_unavailable_keeps_folders(self):
        client = Mock()
        client.list_favorite_folders.return_value = [FolderDTO(id=1)]
        client.list_favorite_images.side_effect = GalleryApiError("Not Found", 404)

        view = BrowseGallery(client).favorites()

        assert [f.id for f in view.folders] == [1]
        assert view.images == []

    def test_favorites_expired_session_propagates(self):
        client = Mock()
        client.list_favorite_folders.return_value = [FolderDTO(id=1)]
        client.list_favorite_images.side_effect = GalleryAuthError("Unauthenticated.", 401)

        with pytest.raises(GalleryAuthError):
            BrowseGallery(client).favorites()


class TestManageTrash:

    def test_not_found_means_empty_trash(self):
        client = Mock()
        client.list_trashed_folders.side_effect = GalleryApiError("Not found", 404)

        assert ManageTrash(client).list().is_empty

    def test_other_errors_propagate(self):
        client = Mock()
        client.list_trashed_folders.side_effect = GalleryApiError("Server error", 500)

        with pytest.raises(GalleryApiError):
            ManageTrash(client).list()

    def test_restore_and_purge_dispatch_by_kind(self):
        client = Mock()
        trash = ManageTrash(client)

        trash.restore("folder", 1)
        trash.purge("image", 2)

        client.restore_folder.assert_called_once_with(1)
        client.force_delete_image.assert_called_once_with(2)
        with pytest.raises(ValueError):
            trash.restore("tag", 3)

    def test_empty_force_deletes_everything_and_reports_failures(self):
        client = Mock()
        deleted = datetime(2024, 1, 1, tzinfo=timezone.utc)
        client.list_trashed_folders.return_value = [FolderDTO(id=1, deleted_at=deleted)]
        client.list_trashed_images.return_value = [ImageDTO(id=2, deleted_at=deleted), ImageDTO(id=3)]
        client.force_delete_image.side_effect = [None, GalleryApiError("Locked", 409)]

        report = ManageTrash(client).empty()

        assert report.deleted == [("image", 2), ("folder", 1)]
        assert report.failed == [("image", 3, "Locked")]
        assert not report.ok


class TestManageProfile:

    def test_stats_default_to_zero_on_error(self):
        client = Mock()
        client.get_user_stats.side_effect = GalleryNetworkError("Failed to fetch user stats")

        assert ManageProfile(client, Mock()).stats() == UserStatsDTO()

    def test_change_avatar_resizes_to_square_jpeg(self):
        client, processor = Mock(), Mock()
        processed = ImageAsset(uri="file:///tmp/avatar.jpg", file_size=30_000, width=400, height=400)
        processor.resize.return_value = processed
        client.upload_avatar.return_value = USER
        source = ImageAsset(uri="file:///photos/me.png")

        assert ManageProfile(client, processor).change_avatar(source) == USER

        processor.resize.assert_called_once_with(source, 400, 400, 0.7)
        client.upload_avatar.assert_called_once_with(processed)

    def test_change_avatar_processing_failure(self):
        client, processor = Mock(), Mock()
        processor.resize.side_effect = OSError("truncated file")

        with pytest.raises(ImagePreparationError, match="Failed to process image"):
            ManageProfile(client, processor).change_avatar(ImageAsset(uri="file:///photos/me.png"))
        client.upload_avatar.assert_not_called()
