from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from urllib.parse import unquote, urlparse

_MIME_BY_EXT = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
}

@dataclass(frozen=True)
class ImageAsset:
    """Imagem local capturada/escolhida, antes ou depois do preparo."""
    uri: str
    file_size: int | None = None
    width: int | None = None
    height: int | None = None

    @property
    def local_path(self) -> Path:
        if self.uri.startswith("file://"):
            return Path(unquote(urlparse(self.uri).path))
        return Path(self.uri)

    @property
    def filename(self) -> str:
        return self.local_path.name

    @property
    def mime_type(self) -> str:
        ext = self.filename.rsplit(".", 1)[-1].lower() if "." in self.filename else ""
        return _MIME_BY_EXT.get(ext, "image/jpeg")

    @classmethod
    def from_path(cls, path: str | Path) -> "ImageAsset":
        p = Path(path).expanduser()
        return cls(uri=str(p), file_size=p.stat().st_size)

    def with_dimensions(self, width: int, height: int) -> "ImageAsset":
        return replace(self, width=width, height=height)


@dataclass(frozen=True)
class ResizePlan:
    quality: float
    width: int
    height: int
