"""I/O contracts for Step 00: Frame aggregation."""

from __future__ import annotations

import threading
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tabletop.core.contracts import PointBuffer


class AggregateFramesInput(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: Any = Field(..., description="FrameSource to take frames from (e.g. LatestFrameSlot)")
    cancel: threading.Event | None = Field(None, description="Set to abort the wait")


class AggregateFramesOutput(BaseModel):
    cloud: PointBuffer
    num_frames: int = Field(..., description="Frames merged into the cloud")
