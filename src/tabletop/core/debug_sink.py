"""Debug side channel for intermediate clouds."""

from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import Protocol

from .contracts import PointBuffer

logger = logging.getLogger(__name__)


class DebugSink(Protocol):
    def publish(self, channel: str, cloud: PointBuffer) -> None: ...


class NullDebugSink:
    """Discards everything."""

    def publish(self, channel: str, cloud: PointBuffer) -> None:
        return None


class PlyDebugSink:
    """Writes every published cloud to ``<output_dir>/<seq>_<channel>.ply``."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._seq = itertools.count()

    def publish(self, channel: str, cloud: PointBuffer) -> None:
        from tabletop.utils.io import write_ply_cloud

        path = self.output_dir / f"{next(self._seq):04d}_{channel}.ply"
        write_ply_cloud(path, cloud)
        logger.debug(f"Debug cloud '{channel}' ({len(cloud)} points) -> {path}")
