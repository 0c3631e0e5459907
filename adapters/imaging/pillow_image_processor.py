from __future__ import annotations

import uuid
from pathlib import Path
from typing import Tuple

import structlog
from PIL import Image, ImageOps

from config.settings import TMP_DIR
from domain.model.image_asset import ImageAsset
from ports.image_processor import ImageProcessorPort

logger = structlog.get_logger(__name__)


class PillowImageProcessor(ImageProcessorPort):
    """
    Redimensiona e recomprime imagens com Pillow.
    Saída sempre em JPEG; transparência vira fundo branco.
    """

    def __init__(self, output_dir: Path = TMP_DIR) -> None:
        self.output_dir = Path(output_dir)

    def probe(self, asset: ImageAsset) -> Tuple[int, int]:
        with Image.open(asset.local_path) as im:
            # respeita a orientação EXIF das fotos de câmera
            w, h = im.size
            if self._is_rotated(im):
                w, h = h, w
        return w, h

    def resize(self, asset: ImageAsset, width: int, height: int, quality: float) -> ImageAsset:
        src = asset.local_path
        self.output_dir.mkdir(parents=True, exist_ok=True)
        out = self.output_dir / f"{src.stem}_{uuid.uuid4().hex[:8]}.jpg"
        log = logger.bind(src=str(src), out=str(out), width=width, height=height, quality=quality)

        with Image.open(src) as im:
            im = ImageOps.exif_transpose(im)
            im = self._flatten(im)
            if im.size != (width, height):
                im = im.resize((width, height), Image.Resampling.LANCZOS)
            im.save(out, format="JPEG", quality=self._jpeg_quality(quality), optimize=True)
            size = im.size

        result = ImageAsset(
            uri=out.resolve().as_uri(),
            file_size=out.stat().st_size,
            width=size[0],
            height=size[1],
        )
        log.debug("pillow.resize.done", file_size=result.file_size)
        return result

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #
    @staticmethod
    def _jpeg_quality(quality: float) -> int:
        return max(1, min(95, int(round(quality * 100))))

    @staticmethod
    def _is_rotated(im: Image.Image) -> bool:
        # orientações 5..8 trocam largura e altura
        return im.getexif().get(0x0112, 1) in (5, 6, 7, 8)

    @staticmethod
    def _flatten(im: Image.Image) -> Image.Image:
        if im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info):
            rgba = im.convert("RGBA")
            bg = Image.new("RGB", rgba.size, (255, 255, 255))
            bg.paste(rgba, mask=rgba.split()[-1])
            return bg
        if im.mode != "RGB":
            return im.convert("RGB")
        return im
