"""Random sampling of slices and comparison pairs at session creation."""

from __future__ import annotations

import logging
import math
import random
import time
from typing import Optional, Sequence, TypeVar

from catalog.models import DatasetImage

from .models import SliceAttributes, SliceSampleOptions


logger = logging.getLogger(__name__)

T = TypeVar("T")


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed)


def sample_without_replacement(items: Sequence[T], count: int, rng: random.Random) -> list[T]:
    """Partial Fisher-Yates: shuffle only the ``count`` tail positions we return.

    Unlike the textbook loop, the final swap is kept because with a partial
    shuffle it is no longer redundant.
    """
    if count == 0:
        return []
    if count < 0 or count > len(items):
        raise ValueError(f"Can't sample {count} elements from a sequence of length {len(items)}")

    pool = list(items)
    for i in range(len(pool) - 1, len(pool) - count - 1, -1):
        j = rng.randrange(i + 1)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[len(pool) - count:]


def _slice_bounds(slice_total: int, min_pct: float, max_pct: float) -> range:
    return range(math.floor(slice_total * (min_pct / 100)), math.ceil(slice_total * (max_pct / 100)))


def sample_slices(
    images: Sequence[DatasetImage],
    options: SliceSampleOptions,
    rng: random.Random,
) -> list[SliceAttributes]:
    """Pick ``image_count`` images, then ``slice_count`` slices among their allowed range.

    Images whose dimensions are unknown cannot be sliced and are skipped.
    """
    start = time.perf_counter()
    usable = [image for image in images if image.dims and len(image.dims) == 3]
    skipped = len(images) - len(usable)
    if skipped:
        logger.warning("Skipping %d image(s) without known dimensions", skipped)

    image_count = min(options.image_count, len(usable))
    sampled_images = sample_without_replacement(usable, image_count, rng)

    candidates: list[SliceAttributes] = []
    for image in sampled_images:
        slice_total = int(image.dims[options.slice_dim])
        for slice_index in _slice_bounds(slice_total, options.slice_min_pct, options.slice_max_pct):
            if slice_index >= slice_total:
                break
            candidates.append(
                SliceAttributes(image_id=image.id, slice_dim=options.slice_dim, slice_index=slice_index)
            )

    slice_count = min(options.slice_count, len(candidates))
    slices = sample_without_replacement(candidates, slice_count, rng)
    logger.info(
        "Sampled %d slice(s) from %d image(s) in %.1fms",
        len(slices),
        len(sampled_images),
        (time.perf_counter() - start) * 1000,
    )
    return slices


def sample_comparisons(slice_count: int, comparison_count: int, rng: random.Random) -> list[tuple[int, int]]:
    """Sample distinct ``(i, j)`` slice index pairs with ``i < j``; ``-1`` takes them all."""
    combinations = [(i, j) for i in range(slice_count) for j in range(i + 1, slice_count)]
    if comparison_count == -1:
        comparison_count = len(combinations)
    comparisons = sample_without_replacement(combinations, comparison_count, rng)
    logger.debug("Sampled %d of %d comparison(s)", len(comparisons), len(combinations))
    return comparisons
