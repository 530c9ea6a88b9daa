"""Frame ingestion: the latest-frame slot shared with the sensor thread."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol, Sequence

from .contracts import PointBuffer

logger = logging.getLogger(__name__)


class FrameWaitCancelled(RuntimeError):
    """Raised when a blocking frame wait is cancelled."""


class FrameSource(Protocol):
    def clear(self) -> None: ...

    def take_latest_blocking(
        self,
        cancel: threading.Event | None = None,
        poll_interval: float | None = None,
    ) -> PointBuffer: ...


class LatestFrameSlot:
    """Single-frame mailbox between a producer thread and the detector.

    A new frame overwrites any frame that has not been taken yet, so a slow
    consumer sees at most one frame per take and excess frames are dropped.
    One condition (one lock) guards the slot; the lock is released while the
    consumer waits.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._frame: PointBuffer | None = None
        self.received_frames = 0
        self.dropped_frames = 0

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._frame is not None

    def try_set_latest(self, frame: PointBuffer) -> bool:
        """Publish ``frame``. Returns False if an untaken frame was overwritten."""
        with self._cond:
            overwritten = self._frame is not None
            self._frame = frame
            self.received_frames += 1
            if overwritten:
                self.dropped_frames += 1
            self._cond.notify_all()
        return not overwritten

    def clear(self) -> None:
        with self._cond:
            if self._frame is not None:
                self.dropped_frames += 1
            self._frame = None

    def take_latest_blocking(
        self,
        cancel: threading.Event | None = None,
        poll_interval: float | None = None,
    ) -> PointBuffer:
        """Wait for a frame and take it out of the slot.

        Without ``cancel`` this blocks until a producer publishes something.
        ``poll_interval`` bounds each condition wait so a set ``cancel`` event
        is noticed within one tick.
        """
        with self._cond:
            while self._frame is None:
                if cancel is not None and cancel.is_set():
                    raise FrameWaitCancelled("Frame wait cancelled")
                self._cond.wait(timeout=poll_interval)
            frame, self._frame = self._frame, None
            return frame


class PlyFrameFeeder:
    """Background producer that cycles frames into a slot at a fixed rate.

    Stands in for the sensor transport when frames come from PLY files.
    """

    def __init__(self, slot: LatestFrameSlot, frames: Sequence[PointBuffer], rate_hz: float = 30.0):
        if not frames:
            raise ValueError("PlyFrameFeeder needs at least one frame")
        if rate_hz <= 0:
            raise ValueError(f"rate_hz must be positive, got {rate_hz}")
        self.slot = slot
        self.frames = list(frames)
        self.rate_hz = rate_hz
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.published = 0

    @classmethod
    def from_files(cls, slot: LatestFrameSlot, paths: Sequence[Path], rate_hz: float = 30.0) -> PlyFrameFeeder:
        from tabletop.utils.io import read_ply_cloud

        frames = [read_ply_cloud(Path(p)) for p in paths]
        return cls(slot, frames, rate_hz=rate_hz)

    def _loop(self) -> None:
        period = 1.0 / self.rate_hz
        i = 0
        while not self._stop.is_set():
            self.slot.try_set_latest(self.frames[i % len(self.frames)])
            self.published += 1
            i += 1
            self._stop.wait(period)

    def start(self) -> PlyFrameFeeder:
        if self._thread is not None:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="ply-frame-feeder", daemon=True)
        self._thread.start()
        logger.info(f"Feeding {len(self.frames)} frame(s) at {self.rate_hz:.1f} Hz")
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        logger.info(f"Frame feeder stopped after {self.published} frame(s)")

    def __enter__(self) -> PlyFrameFeeder:
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
