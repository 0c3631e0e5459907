from __future__ import annotations

from typing import Optional

import structlog

from config.settings import UPLOAD_MAX_DIMENSION, UPLOAD_SIZE_THRESHOLD_BYTES
from domain.errors import ImagePreparationError
from domain.model.image_asset import ImageAsset, ResizePlan
from ports.image_processor import ImageProcessorPort

logger = structlog.get_logger(__name__).bind(service="image_preparation")

_MB = 1024 * 1024

# (limite superior em bytes, qualidade): originais maiores, qualidade menor
QUALITY_TIERS: tuple[tuple[float, float], ...] = (
    (3 * _MB, 0.7),
    (5 * _MB, 0.6),
    (8 * _MB, 0.5),
)
MIN_QUALITY = 0.4
DEFAULT_QUALITY = QUALITY_TIERS[0][1]

# bytes por pixel por unidade de qualidade, usado só quando o processador
# não informa o tamanho final
BYTES_PER_PIXEL_FACTOR = 0.25


def quality_for_size(byte_size: Optional[int]) -> float:
    if byte_size is None:
        return DEFAULT_QUALITY
    for upper, quality in QUALITY_TIERS:
        if byte_size < upper:
            return quality
    return MIN_QUALITY


def target_dimensions(width: int, height: int, max_dimension: int = UPLOAD_MAX_DIMENSION) -> tuple[int, int]:
    """Reduz o lado maior para `max_dimension` mantendo a proporção; nunca amplia."""
    if width <= 0 or height <= 0:
        raise ValueError(f"invalid dimensions {width}x{height}")
    longer = max(width, height)
    if longer <= max_dimension:
        return width, height
    if width > height:
        return max_dimension, max(1, round(height * max_dimension / width))
    return max(1, round(width * max_dimension / height)), max_dimension


def plan_resize(
    byte_size: Optional[int],
    width: int,
    height: int,
    max_dimension: int = UPLOAD_MAX_DIMENSION,
) -> ResizePlan:
    new_w, new_h = target_dimensions(width, height, max_dimension)
    return ResizePlan(quality=quality_for_size(byte_size), width=new_w, height=new_h)


def estimate_file_size(width: int, height: int, quality: float) -> int:
    return int(width * height * quality * BYTES_PER_PIXEL_FACTOR)


def needs_preparation(asset: ImageAsset, threshold: int = UPLOAD_SIZE_THRESHOLD_BYTES) -> bool:
    return asset.file_size is None or asset.file_size >= threshold


class ImagePreparationService:
    """Deixa uma imagem capturada/escolhida dentro do orçamento de upload."""

    def __init__(
        self,
        processor: ImageProcessorPort,
        size_threshold: int = UPLOAD_SIZE_THRESHOLD_BYTES,
        max_dimension: int = UPLOAD_MAX_DIMENSION,
    ) -> None:
        self.processor = processor
        self.size_threshold = size_threshold
        self.max_dimension = max_dimension

    def prepare(self, asset: ImageAsset) -> ImageAsset:
        log = logger.bind(uri=asset.uri, file_size=asset.file_size)

        if not needs_preparation(asset, self.size_threshold):
            log.info("prepare.skip", reason="below_threshold")
            return asset

        try:
            if asset.width is None or asset.height is None:
                width, height = self.processor.probe(asset)
                asset = asset.with_dimensions(width, height)

            plan = plan_resize(asset.file_size, asset.width, asset.height, self.max_dimension)
            log.info("prepare.start", quality=plan.quality, width=plan.width, height=plan.height)

            result = self.processor.resize(asset, plan.width, plan.height, plan.quality)
        except Exception as exc:
            log.exception("prepare.error")
            raise ImagePreparationError("Failed to process image") from exc

        if result.file_size is None:
            out_w = result.width or plan.width
            out_h = result.height or plan.height
            result = ImageAsset(
                uri=result.uri,
                file_size=estimate_file_size(out_w, out_h, plan.quality),
                width=out_w,
                height=out_h,
            )
            log.debug("prepare.size_estimated", estimated=result.file_size)

        log.info("prepare.success", new_size=result.file_size, width=result.width, height=result.height)
        return result
