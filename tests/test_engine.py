"""
Test ClusterEngine state handling: reset, configure, step, spray.
"""

import json
import math
import tempfile
from pathlib import Path

import numpy as np
import pytest

from spraykmeans.clustering import Centroid, MalformedPointError, Point, UNASSIGNED
from spraykmeans.core.logger import EventLogger
from spraykmeans.simulation import ClusterEngine, SimulationConfig


def _engine(**config) -> ClusterEngine:
    return ClusterEngine(SimulationConfig(**config), seed=11, strict=False)


def test_reset_invariants():
    """After reset with k=5: five centroids, unassigned points, iteration 0."""
    engine = _engine(k=5, spray_density=80)
    for _ in range(3):
        engine.step()
    assert engine.iteration == 3

    snapshot = engine.reset()

    assert len(snapshot.centroids) == 5
    assert len(snapshot.points) == 80
    assert all(p.cluster == UNASSIGNED for p in snapshot.points)
    assert snapshot.iteration == 0
    assert snapshot.last_spray is None


def test_configure_k_change_reinitializes():
    engine = _engine(k=3)
    engine.step()
    engine.inject_spray((100.0, 100.0))

    rebuilt = engine.configure(SimulationConfig(k=6))

    assert rebuilt
    assert len(engine.centroids) == 6
    assert engine.iteration == 0
    assert len(engine.points) == engine.config.spray_density
    assert all(p.cluster == UNASSIGNED for p in engine.points)


def test_configure_same_k_keeps_state():
    """Density/radius/speed changes apply live without touching the field."""
    engine = _engine(k=3)
    engine.step()
    before = engine.snapshot()

    rebuilt = engine.configure(SimulationConfig(k=3, spray_density=150, spray_radius=20))

    assert not rebuilt
    assert engine.snapshot().points == before.points
    assert engine.iteration == 1
    assert engine.config.spray_density == 150


def test_configure_clamps():
    """Out-of-range values are clamped, not ignored."""
    engine = _engine()
    engine.configure(SimulationConfig(k=15, spray_density=1, spray_radius=400, animation_speed=0))

    assert engine.config.k == 9
    assert engine.config.spray_density == 10
    assert engine.config.spray_radius == 100
    assert engine.config.animation_speed == 1
    assert len(engine.centroids) == 9


def test_step_keeps_labels_valid():
    engine = _engine(k=4, spray_density=200)
    for _ in range(5):
        snapshot = engine.step()
        assert len(snapshot.centroids) == 4
        assert all(0 <= p.cluster < 4 for p in snapshot.points)


def test_step_noop_without_points():
    engine = _engine(k=2)
    engine.seed_state([], [Centroid(1.0, 2.0), Centroid(3.0, 4.0)])

    snapshot = engine.step()

    assert snapshot.iteration == 0
    assert snapshot.centroids == (Centroid(1.0, 2.0), Centroid(3.0, 4.0))


def test_iteration_counts_steps_even_when_all_orphaned():
    """Only malformed points: nothing assigned, but the step still counts."""
    engine = _engine(k=2)
    engine.seed_state([Point(float('nan'), 1.0)], [Centroid(1.0, 2.0), Centroid(3.0, 4.0)])

    snapshot = engine.step()

    assert snapshot.iteration == 1
    assert snapshot.points[0].cluster == UNASSIGNED
    assert snapshot.centroids == (Centroid(1.0, 2.0), Centroid(3.0, 4.0))


def test_strict_engine_raises_on_malformed():
    engine = ClusterEngine(SimulationConfig(k=2), seed=1, strict=True)
    engine.seed_state([Point(float('nan'), 1.0)], [Centroid(0.0, 0.0), Centroid(5.0, 5.0)])

    with pytest.raises(MalformedPointError):
        engine.step()


def test_strict_from_environment(monkeypatch):
    monkeypatch.setenv("SPRAYKMEANS_STRICT", "1")
    assert ClusterEngine(seed=1).strict

    monkeypatch.setenv("SPRAYKMEANS_STRICT", "0")
    assert not ClusterEngine(seed=1).strict


def test_end_to_end_scenario():
    """Two points on two centroids: labeled 0 and 1, centroids unchanged."""
    engine = _engine(k=2)
    engine.seed_state(
        [Point(0.0, 0.0), Point(100.0, 100.0)],
        [Centroid(0.0, 0.0), Centroid(100.0, 100.0)],
    )

    snapshot = engine.step()

    assert [p.cluster for p in snapshot.points] == [0, 1]
    assert snapshot.centroids == (Centroid(0.0, 0.0), Centroid(100.0, 100.0))
    assert snapshot.iteration == 1


def test_inject_spray_appends():
    engine = _engine(k=3, spray_density=100, spray_radius=40)
    before = engine.snapshot()

    added = engine.inject_spray((400.0, 300.0))

    assert added == 10
    after = engine.snapshot()
    assert after.points[:len(before.points)] == before.points
    assert after.last_spray.radius == pytest.approx(40.0)
    for p in after.points[len(before.points):]:
        assert p.cluster == UNASSIGNED
        assert math.hypot(p.x - 400.0, p.y - 300.0) <= 40.0 + 1e-9


def test_inject_spray_with_override_config():
    engine = _engine(k=3, spray_density=100)

    added = engine.inject_spray(Point(10.0, 10.0), SimulationConfig(k=3, spray_density=37))

    assert added == 3
    assert engine.config.spray_density == 100


def test_inject_spray_non_finite_origin_skipped():
    engine = _engine()
    count = len(engine.points)

    assert engine.inject_spray((float('inf'), 3.0)) == 0
    assert len(engine.points) == count


def test_sprayed_points_get_assigned_next_step():
    engine = _engine(k=3)
    engine.inject_spray((50.0, 50.0))

    snapshot = engine.step()

    assert snapshot.unassigned_count() == 0


def test_snapshot_is_detached():
    """A snapshot doesn't change when the engine moves on."""
    engine = _engine(k=3)
    snapshot = engine.snapshot()

    engine.step()
    engine.inject_spray((1.0, 1.0))

    assert snapshot.iteration == 0
    assert len(snapshot.points) == 100
    assert all(p.cluster == UNASSIGNED for p in snapshot.points)


def test_injected_rng_is_deterministic():
    a = ClusterEngine(SimulationConfig(k=4), rng=np.random.default_rng(99), strict=False)
    b = ClusterEngine(SimulationConfig(k=4), rng=np.random.default_rng(99), strict=False)

    for engine in (a, b):
        engine.inject_spray((300.0, 300.0))
        engine.step()
        engine.step()

    assert a.snapshot() == b.snapshot()


def test_engine_logs_events():
    """Clamp, reset, spray and warning events reach the JSONL log."""
    with tempfile.TemporaryDirectory() as tmpdir:
        with EventLogger(Path(tmpdir)) as logger:
            engine = ClusterEngine(SimulationConfig(k=20), seed=3, logger=logger, strict=False)
            engine.inject_spray((10.0, 10.0))
            engine.inject_spray((float('nan'), 10.0))

        with open(Path(tmpdir) / "simulation.jsonl") as f:
            events = [json.loads(line) for line in f]

    types = [e["type"] for e in events]
    assert types == ["clamp", "reset", "spray", "warning"]
    assert events[0]["field"] == "k"
    assert events[0]["applied"] == 9
    assert events[1]["num_centroids"] == 9
    assert events[2]["points_added"] == 10


def test_speed_change_keeps_seeded_state():
    """A seeded centroid count below the k range survives slider changes."""
    engine = _engine(k=3)
    engine.seed_state([Point(10.0, 10.0)], [Centroid(0.0, 0.0)])
    engine.step()

    rebuilt = engine.configure(SimulationConfig(k=engine.config.k, animation_speed=90))

    assert not rebuilt
    assert engine.iteration == 1
    assert len(engine.points) == 1
    assert len(engine.centroids) == 1
    assert engine.config.k == 1
    assert engine.config.animation_speed == 90


def test_k_change_from_seeded_state_reinitializes():
    engine = _engine(k=3)
    engine.seed_state([Point(10.0, 10.0)], [Centroid(0.0, 0.0)])

    assert engine.configure(SimulationConfig(k=2))
    assert len(engine.centroids) == 2
    assert engine.iteration == 0
