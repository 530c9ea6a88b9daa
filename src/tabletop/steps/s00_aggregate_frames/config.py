"""Configuration for Step 00: Frame aggregation."""

from pydantic import BaseModel, Field


class AggregateFramesConfig(BaseModel):
    num_frames: int = Field(15, ge=1, description="Number of consecutive frames merged per detection")
    poll_hz: float = Field(30.0, gt=0, description="Frame wait tick rate (Hz)")
