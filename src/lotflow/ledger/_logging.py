from __future__ import annotations

from loguru import logger

from lotflow.core.containers.fill import Fill
from lotflow.core.containers.position import ClosedPosition


def log_fill(fill: Fill, sequence: int, closed: list[ClosedPosition]) -> None:
    """Per-fill DEBUG line; ``closed`` is empty for entries."""
    if closed:
        logger.debug(
            f"Exit {fill.side.value} {fill.amount} @ {fill.price} seq={sequence} "
            f"index={fill.index} closed={len(closed)}"
        )
    else:
        logger.debug(f"Entry {fill.side.value} {fill.amount} @ {fill.price} seq={sequence} index={fill.index}")
