from unittest.mock import Mock

import pytest
from PIL import Image

from adapters.repository.sql_local_store import SqlLocalStore
from application import main as cli
from application.dto.folder_dto import FolderDTO
from application.dto.image_dto import ImageDTO
from application.dto.page_dto import PageDTO
from domain.errors import GalleryApiError


@pytest.fixture
def store(tmp_path):
    return SqlLocalStore(f"sqlite:///{tmp_path / 'state.db'}")


@pytest.fixture
def client():
    return Mock()


@pytest.fixture(autouse=True)
def wiring(monkeypatch, store, client):
    monkeypatch.setattr(cli, "make_store", lambda: store)
    monkeypatch.setattr(cli, "make_client", lambda _store: client)


def test_theme_toggle_persists(capsys, store):
    assert cli.main(["theme", "toggle"]) == 0
    assert "dark" in capsys.readouterr().out
    assert store.get("theme") == "dark"


def test_folders_list_with_search(capsys, client):
    client.list_folders.return_value = PageDTO(items=[
        FolderDTO(id=1, name="Summer trip", images_count=4),
        FolderDTO(id=2, name="Receipts"),
    ])

    assert cli.main(["folders", "list", "--search", "trip"]) == 0

    out = capsys.readouterr().out
    assert "Summer trip (4 images)" in out
    assert "Receipts" not in out


def test_api_error_is_printed(capsys, client):
    client.login.side_effect = GalleryApiError("These credentials do not match our records.", 422)

    assert cli.main(["login", "ana@x.io", "--password", "nope"]) == 1
    assert "Error: These credentials do not match our records." in capsys.readouterr().err


def test_upload_prepares_and_sends(capsys, client, tmp_path, monkeypatch):
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (64, 48), "green").save(path, format="JPEG")
    client.upload_image.return_value = ImageDTO(id=77, name="Photo", folder_id=3)

    assert cli.main(["upload", str(path), "--folder", "3", "--name", "Photo"]) == 0

    asset, folder_id, name = client.upload_image.call_args.args
    # abaixo do limite: enviado sem reprocessar
    assert asset.local_path == path
    assert (folder_id, name) == (3, "Photo")
    assert "Uploaded image 77 to folder 3" in capsys.readouterr().out


def test_welcome_is_shown_only_on_first_launch(capsys, store):
    cli.main(["theme", "show"])
    assert "Welcome to Gallery!" in capsys.readouterr().err
    assert store.get("alreadyLaunched") == "true"

    cli.main(["theme", "show"])
    assert "Welcome to Gallery!" not in capsys.readouterr().err
