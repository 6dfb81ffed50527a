"""
Budgeted Image Assembler

Downloads images one at a time, in caller order, compressing each against
what is left of the inline budget. Once an image does not fit, the budget is
marked exceeded and every later image is skipped without being fetched, even
small ones.

The overflowing image is discarded as-is; no second, lower-quality pass is
attempted for it.
"""

import logging
from typing import Optional, Sequence

from .compressor import compress_image_if_needed
from .config import ImagePipelineConfig
from .errors import ImagePipelineError, SizeExceededError
from .fetcher import ImageFetcher, check_declared_size
from .models import BudgetedDownload, ImageDisposition, ImageReference

logger = logging.getLogger(__name__)


class BudgetedAssembler:
    """
    Sequential, budget-aware download of image references.

    Usage:
        assembler = BudgetedAssembler(fetcher)
        result = await assembler.assemble(refs, budget=750 * 1024)
    """

    def __init__(self, fetcher: ImageFetcher, config: Optional[ImagePipelineConfig] = None):
        self.fetcher = fetcher
        self.config = config or fetcher.config

    async def assemble(self, images: Sequence[ImageReference], budget: Optional[int] = None) -> BudgetedDownload:
        """
        Download ``images`` in order until ``budget`` bytes are committed.

        Size-ceiling and download failures become warnings and do not affect
        the budget. Budget skips produce no warning; they are listed in
        ``skipped``.
        """
        if budget is None:
            budget = self.config.inline_budget

        images = list(images)[:self.config.max_images]
        result = BudgetedDownload()

        if not images:
            return result

        for img in images:
            key = img.key

            if result.budget_exceeded:
                result.skipped.append(img)
                result.dispositions.append((img, ImageDisposition.SKIPPED_BUDGET))
                continue

            try:
                check_declared_size(img, self.config.max_image_size)
            except ImagePipelineError as e:
                result.warnings.append(f"Skipped image: {e}")
                result.dispositions.append((img, ImageDisposition.SKIPPED_TOO_LARGE))
                continue

            try:
                data = await self.fetcher.download_image(img.url)
            except SizeExceededError as e:
                logger.warning(f"[ImageAssembler] Too large after download: {img.name or key}: {e}")
                result.warnings.append(f"Skipped image: {e}")
                result.dispositions.append((img, ImageDisposition.SKIPPED_TOO_LARGE))
                continue
            except ImagePipelineError as e:
                logger.warning(f"[ImageAssembler] Download failed for {img.name or key}: {e}")
                result.warnings.append(f"Skipped image: {e}")
                result.dispositions.append((img, ImageDisposition.SKIPPED_ERROR))
                continue

            remaining = budget - result.total_bytes
            compressed = compress_image_if_needed(
                data, img.mime_type, remaining, self.config.jpeg_qualities,
            )
            data = compressed.data

            if result.total_bytes + len(data) > budget:
                logger.info(
                    f"[ImageAssembler] Budget exceeded at {img.name or key}: "
                    f"{result.total_bytes} + {len(data)} > {budget} bytes"
                )
                result.budget_exceeded = True
                result.skipped.append(img)
                result.dispositions.append((img, ImageDisposition.SKIPPED_BUDGET))
                continue

            if compressed.was_converted:
                result.mime_overrides[key] = compressed.mime_type
            result.image_data[key] = data
            result.total_bytes += len(data)
            result.dispositions.append((img, ImageDisposition.INCLUDED))

        logger.info(
            f"[ImageAssembler] Included {len(result.image_data)}/{len(images)} images, "
            f"{result.total_bytes}/{budget} bytes, {len(result.skipped)} skipped by budget, "
            f"{len(result.warnings)} warnings"
        )
        return result
