"""
Test SimulationRunner: controls, pointer events, timed loop.
"""

import json
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from spraykmeans.clustering import Centroid, Point
from spraykmeans.core.logger import EventLogger
from spraykmeans.simulation import (
    ClusterEngine,
    SimulationConfig,
    SimulationRunner,
    tick_delay_ms,
)


def _runner(**config) -> SimulationRunner:
    engine = ClusterEngine(SimulationConfig(**config), seed=21, strict=False)
    return SimulationRunner(engine)


def test_tick_delay_mapping():
    """Higher speed, shorter delay; never below 10ms."""
    assert tick_delay_ms(1) == pytest.approx(990.0)
    assert tick_delay_ms(50) == pytest.approx(500.0)
    assert tick_delay_ms(95) == pytest.approx(50.0)
    assert tick_delay_ms(100) == 10


def test_tick_only_when_running():
    runner = _runner(k=3)

    assert runner.tick() is None
    assert runner.engine.iteration == 0

    runner.start()
    metrics = runner.tick()

    assert metrics.iteration == 1
    assert runner.engine.iteration == 1


def test_toggle_and_reset():
    runner = _runner(k=3)

    assert runner.toggle() is True
    runner.tick()
    runner.tick()

    snapshot = runner.reset()

    assert not runner.running
    assert snapshot.iteration == 0
    assert runner.metrics_history == []


def test_run_collects_metrics():
    runner = _runner(k=4, spray_density=120)

    history = runner.run(5)

    assert [m.iteration for m in history] == [1, 2, 3, 4, 5]
    final = history[-1]
    assert final.num_points == 120
    assert sum(final.cluster_sizes) == 120
    assert final.unassigned_count == 0
    assert final.orphan_count == sum(1 for s in final.cluster_sizes if s == 0)
    assert final.centroid_shift is not None and final.centroid_shift >= 0


def test_pointer_events_need_spray_mode():
    runner = _runner(k=3, spray_density=50)
    count = len(runner.engine.points)

    assert runner.pointer_down(100.0, 100.0) == 0

    runner.spray_mode = True
    assert runner.pointer_down(100.0, 100.0) == 5
    assert runner.pointer_move(120.0, 100.0, pressed=False) == 0
    assert runner.pointer_move(140.0, 100.0, pressed=True) == 5

    assert len(runner.engine.points) == count + 10
    assert runner.engine.last_spray.x == 140.0


def test_sliders_route_through_configure():
    runner = _runner(k=3)
    runner.run(2)

    runner.set_speed(90)
    runner.set_spray_density(60)
    runner.set_spray_radius(500)
    assert runner.engine.iteration == 2
    assert runner.config.spray_radius == 100
    assert runner.delay_ms == pytest.approx(100.0)

    assert runner.set_k(5) is True
    assert runner.engine.iteration == 0
    assert len(runner.engine.centroids) == 5
    assert len(runner.engine.points) == 60


def test_play_sleeps_between_ticks():
    runner = _runner(k=3, animation_speed=50)
    sleep = Mock()

    history = runner.play(max_ticks=3, sleep=sleep)

    assert len(history) == 3
    assert sleep.call_count == 3
    sleep.assert_called_with(pytest.approx(0.5))
    assert not runner.running


def test_play_stops_when_paused_from_callback():
    ticks = []

    def on_tick(snapshot, metrics):
        ticks.append(snapshot.iteration)
        if len(ticks) == 2:
            runner.pause()

    runner = _runner(k=3)
    runner.on_tick = on_tick

    history = runner.play(sleep=Mock())

    assert ticks == [1, 2]
    assert len(history) == 2


def test_play_picks_up_speed_changes():
    runner = _runner(k=3, animation_speed=50)
    delays = []

    def sleep(seconds):
        delays.append(seconds)
        runner.set_speed(100)

    runner.play(max_ticks=2, sleep=sleep)

    assert delays == [pytest.approx(0.5), pytest.approx(0.01)]


def test_slider_change_keeps_seeded_state():
    runner = _runner(k=3)
    runner.engine.seed_state([Point(10.0, 10.0), Point(12.0, 9.0)], [Centroid(0.0, 0.0)])
    runner.step()

    runner.set_speed(90)
    runner.set_spray_density(150)

    assert runner.engine.iteration == 1
    assert len(runner.engine.points) == 2
    assert len(runner.engine.centroids) == 1
    assert runner.delay_ms == pytest.approx(100.0)


def test_empty_field_records_no_steps():
    """Nothing to step: no metrics, no step events, no callbacks."""
    on_tick = Mock()
    with tempfile.TemporaryDirectory() as tmpdir:
        with EventLogger(Path(tmpdir)) as logger:
            engine = ClusterEngine(SimulationConfig(k=2), seed=4, logger=logger, strict=False)
            engine.seed_state([], [Centroid(0.0, 0.0), Centroid(1.0, 1.0)])
            runner = SimulationRunner(engine, on_tick=on_tick)

            assert runner.run(3) == []
            runner.start()
            assert runner.tick() is None
            assert runner.play(max_ticks=5, sleep=Mock()) == []

        with open(Path(tmpdir) / "simulation.jsonl") as f:
            types = [json.loads(line)["type"] for line in f]

    assert runner.metrics_history == []
    assert engine.iteration == 0
    assert "step" not in types
    on_tick.assert_not_called()
