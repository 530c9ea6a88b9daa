"""Tests for the detection orchestrator."""

import threading

import numpy as np

from tabletop.core.contracts import PointBuffer
from tabletop.core.detector import DetectionState, ObjectDetector
from tabletop.core.frames import LatestFrameSlot, PlyFrameFeeder
from tests.conftest import RecordingSink, aligned_config, table_scene

SUCCESS_PATH = [
    DetectionState.IDLE,
    DetectionState.FILTERING,
    DetectionState.PLANE_FITTING,
    DetectionState.CLUSTERING,
    DetectionState.ACCEPTING,
    DetectionState.DONE,
]


class TestObjectDetector:
    def test_state_sequence_on_success(self, scene_on_table):
        detector = ObjectDetector(aligned_config())
        result = detector.detect_cloud(scene_on_table)
        assert result.is_plane_found
        assert detector.state == DetectionState.DONE
        assert detector.state_history == SUCCESS_PATH

    def test_no_plane_stops_before_clustering(self):
        detector = ObjectDetector(aligned_config())
        result = detector.detect_cloud(PointBuffer(xyz=np.empty((0, 3))))
        assert not result.is_plane_found
        assert detector.state_history == [
            DetectionState.IDLE,
            DetectionState.FILTERING,
            DetectionState.PLANE_FITTING,
            DetectionState.NO_PLANE,
        ]

    def test_stage_metadata(self, scene_on_table):
        result = ObjectDetector(aligned_config()).detect_cloud(scene_on_table)
        names = [s.step_name for s in result.stages]
        assert names == ["spatial_filter", "plane_segmentation", "cluster_extraction", "cluster_acceptance"]
        assert all(s.elapsed_seconds >= 0 for s in result.stages)

    def test_same_seed_same_result(self, scene_on_table):
        a = ObjectDetector(aligned_config()).detect_cloud(scene_on_table)
        b = ObjectDetector(aligned_config()).detect_cloud(scene_on_table)
        assert a.plane_coefficients == b.plane_coefficients
        assert [len(c) for c in a.clusters] == [len(c) for c in b.clusters]

    def test_debug_sink_channels(self, scene_on_table):
        sink = RecordingSink()
        result = ObjectDetector(aligned_config(), debug_sink=sink).detect_cloud(scene_on_table)
        channels = [c for c, _ in sink.published]
        assert channels == ["blobs", "clusters_on_plane"]
        assert len(sink.published[1][1]) == sum(len(c) for c in result.clusters)

    def test_failing_debug_sink_does_not_change_result(self, scene_on_table):
        class BrokenSink:
            def publish(self, channel, cloud):
                raise OSError("disk full")

        result = ObjectDetector(aligned_config(), debug_sink=BrokenSink()).detect_cloud(scene_on_table)
        assert result.is_plane_found
        assert len(result.clusters) == 1

    def test_stage_errors_do_not_escape(self, scene_on_table, monkeypatch):
        detector = ObjectDetector(aligned_config())

        def boom(inputs):
            raise RuntimeError("kd-tree exploded")

        monkeypatch.setattr(detector.cluster_step, "execute", boom)
        result = detector.detect_cloud(scene_on_table)
        assert not result.is_plane_found
        assert result.clusters == ()
        assert detector.state == DetectionState.NO_PLANE

    def test_detector_reusable_after_failure(self, scene_on_table):
        detector = ObjectDetector(aligned_config())
        assert not detector.detect_cloud(PointBuffer(xyz=np.empty((0, 3)))).is_plane_found
        assert detector.detect_cloud(scene_on_table).is_plane_found

    def test_detect_aggregates_frames(self):
        cfg = aligned_config()
        cfg.aggregation.num_frames = 3
        cfg.aggregation.poll_hz = 200.0
        slot = LatestFrameSlot()
        detector = ObjectDetector(cfg, frame_source=slot)
        with PlyFrameFeeder(slot, [table_scene()], rate_hz=200.0):
            result = detector.detect()
        assert result.is_plane_found
        assert result.frame_id == "camera_depth_optical_frame"
        assert detector.state_history[:2] == [DetectionState.IDLE, DetectionState.AGGREGATING]
        assert result.stages[0].step_name == "aggregate_frames"

    def test_detect_without_source(self):
        detector = ObjectDetector(aligned_config())
        assert not detector.detect().is_plane_found

    def test_detect_cancelled(self):
        cfg = aligned_config()
        cfg.aggregation.poll_hz = 100.0
        detector = ObjectDetector(cfg, frame_source=LatestFrameSlot())
        cancel = threading.Event()
        timer = threading.Timer(0.05, cancel.set)
        timer.start()
        result = detector.detect(cancel=cancel)
        timer.join()
        assert not result.is_plane_found
        assert detector.state == DetectionState.NO_PLANE
