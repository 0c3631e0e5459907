import argparse
import getpass
import sys
from typing import Optional, Sequence

from config.logging import configure_logging
from config.settings import DEFAULT_SORT, LOG_LEVEL, SORT_OPTIONS, STATE_DB_URL
# antes dos demais imports: os módulos fazem bind dos loggers na importação
configure_logging(LOG_LEVEL)

import structlog  # noqa: E402

from adapters.gallery.gallery_api_client import GalleryApiClient  # noqa: E402
from adapters.imaging.pillow_image_processor import PillowImageProcessor  # noqa: E402
from adapters.repository.sql_local_store import SqlLocalStore  # noqa: E402
from application.usecase.browse_gallery import BrowseGallery  # noqa: E402
from application.usecase.capture_and_upload import UploadSession  # noqa: E402
from application.usecase.manage_preferences import Preferences  # noqa: E402
from application.usecase.manage_profile import ManageProfile  # noqa: E402
from application.usecase.manage_session import AuthSession  # noqa: E402
from application.usecase.manage_trash import ManageTrash  # noqa: E402
from domain.errors import GalleryError  # noqa: E402
from domain.model.image_asset import ImageAsset  # noqa: E402
from domain.service.image_preparation import ImagePreparationService  # noqa: E402

logger = structlog.get_logger(__name__)


def make_store() -> SqlLocalStore:
    return SqlLocalStore(STATE_DB_URL)

def make_client(store: SqlLocalStore) -> GalleryApiClient:
    return GalleryApiClient(token_store=store)


# --------------------------------------------------------------------------- #
#   Parser                                                                    #
# --------------------------------------------------------------------------- #
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gallery", description="Cliente da galeria de pastas e imagens.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login")
    p.add_argument("email")
    p.add_argument("--password")

    p = sub.add_parser("register")
    p.add_argument("name")
    p.add_argument("email")
    p.add_argument("--password")

    sub.add_parser("logout")
    sub.add_parser("whoami")

    # ---- pastas ----
    folders = sub.add_parser("folders").add_subparsers(dest="action", required=True)
    p = folders.add_parser("list")
    p.add_argument("--sort", choices=SORT_OPTIONS, default=DEFAULT_SORT)
    p.add_argument("--search")
    p = folders.add_parser("show")
    p.add_argument("folder_id", type=int)
    p.add_argument("--page", type=int, default=1)
    p = folders.add_parser("create")
    p.add_argument("name")
    p.add_argument("--color")
    p.add_argument("--description")
    p = folders.add_parser("update")
    p.add_argument("folder_id", type=int)
    p.add_argument("--name")
    p.add_argument("--color")
    p.add_argument("--description")
    for action in ("delete", "favorite"):
        folders.add_parser(action).add_argument("folder_id", type=int)

    # ---- imagens ----
    images = sub.add_parser("images").add_subparsers(dest="action", required=True)
    p = images.add_parser("list")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--sort", choices=SORT_OPTIONS, default=DEFAULT_SORT)
    p = images.add_parser("rename")
    p.add_argument("image_id", type=int)
    p.add_argument("name")
    for action in ("show", "delete", "favorite"):
        images.add_parser(action).add_argument("image_id", type=int)

    p = sub.add_parser("upload", help="Prepara e envia uma imagem local para uma pasta.")
    p.add_argument("path")
    p.add_argument("--folder", type=int, required=True)
    p.add_argument("--name")

    sub.add_parser("favorites")

    # ---- lixeira ----
    trash = sub.add_parser("trash").add_subparsers(dest="action", required=True)
    trash.add_parser("list")
    trash.add_parser("empty")
    for action in ("restore", "purge"):
        p = trash.add_parser(action)
        p.add_argument("kind", choices=("folder", "image"))
        p.add_argument("item_id", type=int)

    # ---- perfil ----
    profile = sub.add_parser("profile").add_subparsers(dest="action", required=True)
    profile.add_parser("show")
    p = profile.add_parser("update")
    p.add_argument("--name")
    p.add_argument("--email")
    profile.add_parser("avatar").add_argument("path")

    theme = sub.add_parser("theme").add_subparsers(dest="action", required=True)
    theme.add_parser("show")
    theme.add_parser("toggle")

    tags = sub.add_parser("tags").add_subparsers(dest="action", required=True)
    tags.add_parser("list")
    p = tags.add_parser("create")
    p.add_argument("name")
    p.add_argument("--color")
    tags.add_parser("delete").add_argument("tag_id", type=int)

    p = sub.add_parser("ping")
    p.add_argument("--url")
    return parser


# --------------------------------------------------------------------------- #
#   Comandos                                                                  #
# --------------------------------------------------------------------------- #
def _folder_line(f) -> str:
    star = "*" if f.is_favorite else " "
    return f"{f.id:>6} {star} {f.name} ({f.images_count} images)"

def _image_line(i) -> str:
    star = "*" if i.is_favorite else " "
    return f"{i.id:>6} {star} {i.name}  {i.path or ''}"

def run(args: argparse.Namespace, store: SqlLocalStore, client: GalleryApiClient) -> int:
    session = AuthSession(client, store)
    cmd = args.command
    _welcome_once(Preferences(store))

    if cmd == "login":
        password = args.password or getpass.getpass("Password: ")
        result = session.login(args.email, password)
        print(f"Logged in as {result.user.name} <{result.user.email}>")
    elif cmd == "register":
        password = args.password or getpass.getpass("Password: ")
        confirmation = args.password or getpass.getpass("Confirm password: ")
        result = session.register(args.name, args.email, password, confirmation)
        print(f"Welcome, {result.user.name}!")
    elif cmd == "logout":
        session.logout()
        print("Logged out")
    elif cmd == "whoami":
        user = session.restore()
        print(f"{user.name} <{user.email}>" if user else "Not logged in")
    elif cmd == "folders":
        return _run_folders(args, client)
    elif cmd == "images":
        return _run_images(args, client)
    elif cmd == "upload":
        return _run_upload(args, client)
    elif cmd == "favorites":
        view = BrowseGallery(client).favorites()
        if view.is_empty:
            print("No favorites yet")
        for f in view.folders:
            print(_folder_line(f))
        for i in view.images:
            print(_image_line(i))
    elif cmd == "trash":
        return _run_trash(args, client)
    elif cmd == "profile":
        return _run_profile(args, client)
    elif cmd == "theme":
        prefs = Preferences(store)
        theme = prefs.toggle_theme() if args.action == "toggle" else prefs.theme
        print(theme.value)
    elif cmd == "tags":
        if args.action == "list":
            for t in client.list_tags():
                print(f"{t.id:>6} {t.name}")
        elif args.action == "create":
            tag = client.create_tag(args.name, args.color)
            print(f"Created tag {tag.id}")
        else:
            client.delete_tag(args.tag_id)
            print("Tag deleted")
    elif cmd == "ping":
        res = client.ping(args.url)
        if res.success:
            print(f"{res.method} {res.status_code} {res.status_text or ''} in {res.duration_ms} ms")
        else:
            print(f"Unreachable: {res.error}" + (" (timeout)" if res.is_timeout else ""))
            return 1
    return 0

def _welcome_once(prefs: Preferences) -> None:
    if prefs.is_first_launch():
        print("Welcome to Gallery! Run `gallery login` or `gallery register` to get started.", file=sys.stderr)
        prefs.mark_onboarded()

def _run_folders(args, client) -> int:
    if args.action == "list":
        folders = BrowseGallery(client).folders(sort=args.sort, search=args.search)
        if not folders:
            print("Try a different search term" if args.search else "Create your first folder to get started")
        for f in folders:
            print(_folder_line(f))
    elif args.action == "show":
        folder = client.get_folder(args.folder_id)
        print(_folder_line(folder))
        if folder.description:
            print(f"       {folder.description}")
        for i in client.list_folder_images(args.folder_id, page=args.page).items:
            print(_image_line(i))
    elif args.action == "create":
        folder = client.create_folder(args.name, args.color, args.description)
        print(f"Created folder {folder.id}: {folder.name}")
    elif args.action == "update":
        data = {k: v for k, v in (("name", args.name), ("color", args.color), ("description", args.description)) if v}
        folder = client.update_folder(args.folder_id, data)
        print(_folder_line(folder))
    elif args.action == "delete":
        client.delete_folder(args.folder_id)
        print("Folder moved to trash")
    elif args.action == "favorite":
        client.toggle_favorite_folder(args.folder_id)
        print("Folder favorite status updated")
    return 0

def _run_images(args, client) -> int:
    if args.action == "list":
        for i in client.list_images(page=args.page, sort=args.sort).items:
            print(_image_line(i))
    elif args.action == "show":
        print(_image_line(client.get_image(args.image_id)))
    elif args.action == "rename":
        print(_image_line(client.update_image(args.image_id, {"name": args.name})))
    elif args.action == "delete":
        client.delete_image(args.image_id)
        print("Image moved to trash")
    elif args.action == "favorite":
        client.toggle_favorite_image(args.image_id)
        print("Image favorite status updated")
    return 0

def _run_upload(args, client) -> int:
    upload = UploadSession(client, ImagePreparationService(PillowImageProcessor()), folder_id=args.folder)
    try:
        asset = upload.pick(lambda: ImageAsset.from_path(args.path))
        if asset is None:
            print("Nothing to upload", file=sys.stderr)
            return 1
        image = upload.upload(args.name)
    finally:
        upload.close()
    if image is None:
        return 1
    print(f"Uploaded image {image.id} to folder {args.folder}")
    return 0

def _run_trash(args, client) -> int:
    trash = ManageTrash(client)
    if args.action == "list":
        view = trash.list()
        if view.is_empty:
            print("Trash is empty")
        for f in view.folders:
            print(f"folder {f.id:>6} {f.name}  deleted {f.deleted_at:%Y-%m-%d}" if f.deleted_at else f"folder {f.id:>6} {f.name}")
        for i in view.images:
            print(f"image  {i.id:>6} {i.name}  deleted {i.deleted_at:%Y-%m-%d}" if i.deleted_at else f"image  {i.id:>6} {i.name}")
    elif args.action == "restore":
        trash.restore(args.kind, args.item_id)
        print(f"{args.kind.capitalize()} restored successfully")
    elif args.action == "purge":
        trash.purge(args.kind, args.item_id)
        print(f"{args.kind.capitalize()} permanently deleted")
    elif args.action == "empty":
        report = trash.empty()
        print(f"Deleted {len(report.deleted)} items")
        for kind, item_id, reason in report.failed:
            print(f"Failed to delete {kind} {item_id}: {reason}", file=sys.stderr)
        return 0 if report.ok else 1
    return 0

def _run_profile(args, client) -> int:
    profile = ManageProfile(client, PillowImageProcessor())
    if args.action == "show":
        user = profile.profile()
        stats = profile.stats()
        print(f"{user.name} <{user.email}>")
        print(f"folders: {stats.folder_count}  images: {stats.image_count}  favorites: {stats.favorite_count}")
    elif args.action == "update":
        data = {k: v for k, v in (("name", args.name), ("email", args.email)) if v}
        user = profile.update(data)
        print(f"{user.name} <{user.email}>")
    elif args.action == "avatar":
        user = profile.change_avatar(ImageAsset.from_path(args.path))
        print(f"Avatar updated: {user.avatar or ''}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger.info("boot.command", command=args.command, action=getattr(args, "action", None))

    store = make_store()
    client = make_client(store)
    try:
        return run(args, store, client)
    except GalleryError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

if __name__ == "__main__":
    sys.exit(main())
