import numpy as np
import pytest

from detector_rl.engine.detection import (
    AreaSensor,
    DetectionFusion,
    RaySensor,
    ViewportSensor,
    rotate_yaw,
)
from detector_rl.engine.types import Hit, ObjectId


class FakeContext:
    """Sensing context answering from canned hits and recording every query."""

    def __init__(self, ray_hits=None, viewport_hit=None, area_hits=()):
        self.origin = np.array([0.0, 0.0, 0.5])
        self.forward = np.array([1.0, 0.0, 0.0])
        self.ray_hits = ray_hits or {}
        self.viewport_hit = viewport_hit
        self.area_hits = list(area_hits)
        self.ray_calls = []
        self.viewport_calls = []
        self.area_calls = []

    def ray_cast(self, origin, direction, max_distance):
        index = len(self.ray_calls)
        self.ray_calls.append((origin, direction, max_distance))
        return self.ray_hits.get(index)

    def viewport_cast(self, center_fraction, max_distance):
        self.viewport_calls.append((center_fraction, max_distance))
        return self.viewport_hit

    def area_query(self, center, radius):
        self.area_calls.append((center, radius))
        return self.area_hits


def hit(object_id, tag, x=3.0, y=0.0, distance=3.0):
    return Hit(object_id=ObjectId(object_id), tag=tag, point=np.array([x, y, 0.5]), distance=distance)


def test_rotate_yaw_quarter_turn():
    rotated = rotate_yaw(np.array([1.0, 0.0, 0.0]), 90.0)
    np.testing.assert_allclose(rotated, [0.0, 1.0, 0.0], atol=1e-12)


class TestSensors:

    def test_rays_evenly_spread_over_full_circle(self):
        context = FakeContext()
        RaySensor(ray_count=8, max_distance=20.0).sense(context)

        assert len(context.ray_calls) == 8
        angles = [np.degrees(np.arctan2(d[1], d[0])) % 360.0 for _, d, _ in context.ray_calls]
        np.testing.assert_allclose(angles, np.arange(0.0, 360.0, 45.0), atol=1e-9)
        assert all(max_distance == 20.0 for _, _, max_distance in context.ray_calls)

    def test_invalid_ray_count(self):
        with pytest.raises(ValueError):
            RaySensor(ray_count=0)

    def test_viewport_casts_once_from_center(self):
        context = FakeContext()
        ViewportSensor(max_distance=15.0).sense(context)
        assert context.viewport_calls == [((0.5, 0.5), 15.0)]

    def test_area_distance_measured_from_origin(self):
        context = FakeContext(area_hits=[hit(1, "crate", x=3.0, y=4.0, distance=0.0)])
        hits = AreaSensor(radius=10.0).sense(context)
        assert len(context.area_calls) == 1
        assert context.area_calls[0][1] == 10.0
        assert hits[0].distance == pytest.approx(5.0)


class TestDetectionFusion:

    def test_unmatched_tags_are_discarded(self, spec_table):
        context = FakeContext(
            ray_hits={0: hit(1, "terrain"), 2: hit(2, "crate")},
            viewport_hit=hit(3, "wall"),
            area_hits=[hit(4, "obstacle")]
        )
        fusion = DetectionFusion.with_default_sensors(spec_table)
        events = fusion.collect(context)

        assert [e.object_id for e in events] == [2]
        assert events[0].spec.tag == "crate"
        assert events[0].modality == "ray"

    def test_same_object_reported_by_every_modality(self, spec_table):
        context = FakeContext(
            ray_hits={0: hit(7, "crate"), 4: hit(7, "crate")},
            viewport_hit=hit(7, "crate"),
            area_hits=[hit(7, "crate")]
        )
        fusion = DetectionFusion.with_default_sensors(spec_table)
        events = fusion.collect(context)

        assert [e.object_id for e in events] == [7, 7, 7, 7]
        assert [e.modality for e in events] == ["ray", "ray", "viewport", "area"]

    def test_event_carries_hit_geometry(self, spec_table):
        context = FakeContext(viewport_hit=hit(5, "barrel", x=6.0, distance=6.0))
        fusion = DetectionFusion(spec_table, [ViewportSensor()])
        event = fusion.collect(context)[0]

        np.testing.assert_allclose(event.position, [6.0, 0.0, 0.5])
        assert event.distance == pytest.approx(6.0)
        assert event.spec is spec_table["barrel"]

    def test_disabled_sensors_are_not_queried(self, spec_table):
        context = FakeContext()
        fusion = DetectionFusion.with_default_sensors(
            spec_table, use_camera_sensor=False, use_grid_sensor=False, ray_count=4
        )
        fusion.collect(context)

        assert len(context.ray_calls) == 4
        assert context.viewport_calls == []
        assert context.area_calls == []

    def test_nothing_sensed(self, spec_table):
        fusion = DetectionFusion.with_default_sensors(spec_table)
        assert fusion.collect(FakeContext()) == []


def test_events_compare_and_hash_by_identity(make_event):
    first = make_event(object_id=1)
    second = make_event(object_id=1)

    assert first == first
    assert first != second
    assert len({first, second}) == 2
