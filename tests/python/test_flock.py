from __future__ import annotations

import logging
import math

import pytest
from pytest import approx

from flocksim.config import AttractorConfig, FlockConfig
from flocksim.sim.core.flock import Flock
from flocksim.sim.utils.math2d import approx_hypot


def empty_flock(**overrides) -> Flock:
    return Flock(FlockConfig(size=0, **overrides))


def state(flock: Flock) -> list[tuple[float, ...]]:
    return [agent.as_tuple() for agent in flock.agents]


def test_default_population_is_spawned_in_range():
    flock = Flock(FlockConfig(seed=3))

    assert len(flock.agents) == 50
    assert flock.attractors == []
    for agent in flock.agents:
        assert -200.0 <= agent.x < 200.0
        assert -200.0 <= agent.y < 200.0
        assert -0.5 <= agent.vx < 0.5
        assert -0.5 <= agent.vy < 0.5
        assert (agent.ax, agent.ay) == (0.0, 0.0)


def test_parameters_are_stored_squared():
    flock = Flock(FlockConfig(size=0, speed_limit=2.0, acceleration_limit=0.5))
    params = flock.params

    assert params.separation_distance == 3600.0
    assert params.alignment_distance == 32400.0
    assert params.cohesion_distance == 32400.0
    assert params.speed_limit == 4.0
    assert params.speed_limit_root == 2.0
    assert params.acceleration_limit == 0.25
    assert params.acceleration_limit_root == 0.5
    assert (params.separation_force, params.cohesion_force, params.alignment_force) == (0.15, 0.1, 0.25)


def test_configured_attractors_are_created():
    flock = Flock(FlockConfig(size=0, attractors=[AttractorConfig(1.0, 2.0, 30.0, -0.2)]))
    assert [a.as_tuple() for a in flock.attractors] == [(1.0, 2.0, 30.0, -0.2)]


def test_tick_with_no_agents_still_notifies_observers():
    flock = empty_flock()
    calls = []
    flock.on_tick(calls.append)

    metrics = flock.tick()

    assert calls == [[]]
    assert metrics.population == 0
    assert metrics.average_speed == 0.0


def test_single_agent_moves_by_its_own_velocity():
    flock = empty_flock()
    flock.add_agent(1.0, 2.0, 0.5, -0.25)
    calls = []
    flock.on_tick(calls.append)

    flock.tick()

    assert state(flock) == [(1.5, 1.75, 0.5, -0.25, 0.0, 0.0)]
    assert len(calls) == 1
    assert calls[0] is flock.agents


def test_close_pair_separates():
    flock = empty_flock()
    flock.add_agent(0.0, 0.0)
    flock.add_agent(10.0, 0.0)

    flock.tick()

    first, second = state(flock)
    assert first[0] == approx(-0.15)
    assert first[2] == approx(-0.15)
    assert second[0] == approx(10.15)
    assert second[2] == approx(0.15)
    assert first[1] == second[1] == 0.0


def test_separation_threshold_is_exclusive():
    inside = empty_flock()
    inside.add_agent(0.0, 0.0)
    inside.add_agent(59.0, 0.0)
    inside.tick()
    assert inside.agents[0].vx == approx(-0.15)

    boundary = empty_flock()
    boundary.add_agent(0.0, 0.0)
    boundary.add_agent(60.0, 0.0)
    boundary.tick()
    # Exactly at the separation radius the pair falls through to cohesion.
    assert boundary.agents[0].vx == approx(0.1)
    assert boundary.agents[1].vx == approx(-0.1)
    assert boundary.agents[0].x == approx(0.1)


def test_cohesion_and_alignment_combine_outside_separation():
    flock = empty_flock()
    flock.add_agent(0.0, 0.0)
    flock.add_agent(100.0, 0.0, 0.0, 1.0)

    flock.tick()

    agent = flock.agents[0]
    assert agent.vx == approx(0.1)
    assert agent.vy == approx(-0.25)
    assert (agent.ax, agent.ay) == (0.0, 0.0)


def test_agents_beyond_every_radius_do_not_interact():
    flock = empty_flock()
    flock.add_agent(0.0, 0.0, 0.25, 0.0)
    flock.add_agent(1000.0, 0.0)

    flock.tick()

    assert state(flock) == [(0.25, 0.0, 0.25, 0.0, 0.0, 0.0), (1000.0, 0.0, 0.0, 0.0, 0.0, 0.0)]


def test_acceleration_is_clamped_to_limit():
    flock = empty_flock(acceleration_limit=0.1)
    flock.add_agent(0.0, 0.0)
    flock.add_agent(10.0, 0.0)

    flock.tick()

    assert flock.agents[0].vx == approx(-0.1)
    assert flock.agents[1].vx == approx(0.1)


def test_speed_is_clamped_to_limit():
    flock = empty_flock(speed_limit=0.5)
    flock.add_agent(0.0, 0.0, 3.0, 4.0)

    flock.tick()

    agent = flock.agents[0]
    assert approx_hypot(agent.vx, agent.vy) == approx(0.5)
    assert agent.vy / agent.vx == approx(4.0 / 3.0)
    assert (agent.x, agent.y) == (agent.vx, agent.vy)


def test_speed_limit_holds_across_many_ticks():
    flock = Flock(FlockConfig(seed=11, size=40, speed_limit=1.2, acceleration_limit=0.1))
    flock.add_attractor(0.0, 0.0, 150.0, 0.3)

    for _ in range(60):
        flock.tick()
        for agent in flock.agents:
            # Clamping rescales by the approximate magnitude, whose error is about 1%.
            assert approx_hypot(agent.vx, agent.vy) <= 1.2 * 1.01


def test_attractor_nudges_velocity_directly():
    flock = empty_flock(acceleration_limit=0.1)
    flock.add_agent(10.0, 0.0)
    flock.add_attractor(0.0, 0.0, 50.0, 0.5)

    flock.tick()

    # The nudge skips the acceleration limit.
    assert flock.agents[0].as_tuple() == (9.5, 0.0, -0.5, 0.0, 0.0, 0.0)


def test_negative_force_repels():
    flock = empty_flock()
    flock.add_agent(10.0, 0.0)
    flock.add_attractor(0.0, 0.0, 50.0, -0.5)

    flock.tick()

    assert flock.agents[0].vx == approx(0.5)


def test_attractor_radius_is_exclusive():
    flock = empty_flock()
    flock.add_agent(50.0, 0.0)
    flock.add_attractor(0.0, 0.0, 50.0, 0.5)

    flock.tick()

    assert flock.agents[0].as_tuple() == (50.0, 0.0, 0.0, 0.0, 0.0, 0.0)


def test_degenerate_geometry_stays_finite():
    flock = empty_flock()
    flock.add_agent(0.0, 0.0)
    flock.add_agent(0.0, 0.0)
    flock.add_attractor(0.0, 0.0, 10.0, 1.0)
    flock.add_attractor(float("inf"), float("inf"), 200.0, 0.1)

    flock.tick()

    for agent in flock.agents:
        assert agent.as_tuple() == (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@pytest.mark.parametrize(
    "config",
    [
        FlockConfig(seed=1),
        FlockConfig(seed=2, size=80, speed_limit=2.0, acceleration_limit=0.5),
        FlockConfig(seed=3, size=30, acceleration_limit=0.0, separation_distance=0.0),
        FlockConfig(
            seed=4,
            size=60,
            speed_limit=1.2,
            acceleration_limit=0.1,
            separation_distance=80,
            alignment_distance=250,
            cohesion_distance=220,
            separation_force=0.12,
            alignment_force=0.45,
            cohesion_force=0.08,
            attractors=[AttractorConfig(0.0, 0.0, 200.0, 0.1), AttractorConfig(50.0, 50.0, 30.0, -0.2)],
        ),
    ],
)
def test_state_stays_finite(config):
    flock = Flock(config)
    flock.add_agent(0.0, 0.0)
    flock.add_agent(0.0, 0.0)

    for _ in range(100):
        flock.tick()

    for agent in flock.agents:
        assert len(agent.as_tuple()) == 6
        assert all(math.isfinite(value) for value in agent.as_tuple())


def test_deterministic_ticks():
    flock_a = Flock(FlockConfig(seed=1234, size=40))
    flock_b = Flock(FlockConfig(seed=1234, size=40))
    for flock in (flock_a, flock_b):
        flock.add_attractor(20.0, -20.0, 120.0, 0.2)

    for _ in range(50):
        flock_a.tick()
        flock_b.tick()

    assert state(flock_a) == state(flock_b)


def test_removed_attractor_matches_flock_without_attractors():
    plain = Flock(FlockConfig(seed=5, size=25))
    touched = Flock(FlockConfig(seed=5, size=25))
    touched.add_attractor(0.0, 0.0, 500.0, 1.0)
    touched.clear_attractors()

    for _ in range(30):
        plain.tick()
        touched.tick()

    assert state(plain) == state(touched)


def test_reset_restores_initial_population():
    flock = Flock(FlockConfig(seed=21, size=10, attractors=[AttractorConfig(0.0, 0.0, 10.0, 0.1)]))
    initial = state(flock)
    flock.add_attractor(1.0, 1.0, 1.0, 1.0)
    for _ in range(5):
        flock.tick()

    flock.reset()

    assert flock.tick_count == 0
    assert flock.metrics is None
    assert state(flock) == initial
    assert [a.as_tuple() for a in flock.attractors] == [(0.0, 0.0, 10.0, 0.1)]


def test_remove_agent_ignores_out_of_range_index():
    flock = Flock(FlockConfig(seed=8, size=3))
    remaining = state(flock)[1:]

    flock.remove_agent(-1)
    flock.remove_agent(3)
    assert len(flock.agents) == 3

    flock.remove_agent(0)
    assert state(flock) == remaining


def test_attractor_add_remove_and_clear():
    flock = empty_flock()
    flock.add_agent(1.0, 1.0)
    flock.add_attractor(0.0, 0.0, 10.0, 0.1)
    flock.add_attractor(5.0, 5.0, 20.0, -0.1)

    flock.remove_attractor(2)
    flock.remove_attractor(-1)
    assert len(flock.attractors) == 2

    flock.remove_attractor(0)
    assert [a.as_tuple() for a in flock.attractors] == [(5.0, 5.0, 20.0, -0.1)]

    flock.clear_attractors()
    assert flock.attractors == []
    assert len(flock.agents) == 1

    flock.add_attractor(0.0, 0.0, 10.0, 0.1)
    flock.clear_agents()
    assert flock.agents == []
    assert len(flock.attractors) == 1


def test_external_attractor_mutation_is_seen_next_tick():
    flock = empty_flock()
    flock.add_agent(10.0, 0.0)
    pointer = flock.add_attractor(float("inf"), float("inf"), 50.0, 0.5)

    flock.tick()
    assert flock.agents[0].vx == 0.0

    flock.attractors[0].move_to(0.0, 0.0)
    assert pointer is flock.attractors[0]
    flock.tick()
    assert flock.agents[0].vx == approx(-0.5)


def test_observers_run_in_registration_order_and_can_unregister():
    order = []
    flock = Flock(FlockConfig(size=1, seed=2), callback=lambda agents: order.append("ctor"))

    @flock.on_tick
    def first(agents):
        order.append("first")

    def second(agents):
        order.append("second")

    flock.on_tick(second)
    flock.tick()
    assert order == ["ctor", "first", "second"]

    flock.off_tick(first)
    flock.off_tick(first)
    order.clear()
    flock.tick()
    assert order == ["ctor", "second"]


def test_observer_mutation_carries_into_next_tick():
    flock = empty_flock()
    flock.add_agent(0.0, 0.0, 1.0, 0.0)

    def pin(agents):
        agents[0].position.x = 100.0

    flock.on_tick(pin)
    flock.tick()
    assert flock.agents[0].x == 100.0

    flock.off_tick(pin)
    flock.tick()
    assert flock.agents[0].x == 101.0


def test_metrics_and_snapshot():
    flock = empty_flock()
    flock.add_agent(0.0, 0.0, 3.0, 4.0)
    flock.add_agent(500.0, 0.0)
    flock.add_attractor(float("inf"), float("inf"), 10.0, 0.1)

    metrics = flock.tick()

    assert metrics.tick == 1
    assert metrics.population == 2
    assert metrics.attractors == 1
    assert metrics.max_speed == approx(5.03125)
    assert metrics.average_speed == approx(5.03125 / 2)
    assert metrics.tick_duration_ms >= 0.0

    snapshot = flock.snapshot()
    assert snapshot.tick == 1
    assert snapshot.metrics is metrics
    assert snapshot.agents[0]["x"] == 3.0
    assert snapshot.agents[1]["index"] == 1
    assert snapshot.attractors == [{"x": None, "y": None, "radius": 10.0, "force": 0.1}]


@pytest.mark.long_run
def test_long_run_stays_finite_and_bounded():
    flock = Flock(FlockConfig(seed=99, size=300, speed_limit=1.2, acceleration_limit=0.1))
    flock.add_attractor(0.0, 0.0, 200.0, 0.1)

    for _ in range(500):
        flock.tick()

    assert all(math.isfinite(value) for agent in flock.agents for value in agent.as_tuple())
    assert flock.metrics.max_speed <= 1.2 * 1.01


def test_population_changes_are_logged(caplog):
    flock = empty_flock()

    with caplog.at_level(logging.DEBUG, logger="flocksim.sim.core.flock"):
        flock.add_agent(1.0, 2.0)
        flock.add_agent(3.0, 4.0)
        flock.remove_agent(0)
        flock.remove_agent(5)
        flock.clear_agents()

    messages = [record.getMessage() for record in caplog.records]
    assert messages == [
        "added agent 0 at (1.0, 2.0)",
        "added agent 1 at (3.0, 4.0)",
        "removed agent 0, 1 left",
        "cleared 1 agents",
    ]
