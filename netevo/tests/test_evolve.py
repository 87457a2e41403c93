"""
Tests for mutations and simulated annealing.
"""

import io
import logging

import pytest
import numpy as np

from netevo.config import EvolveSAParams, quick_params
from netevo.core import ChangeLog, ChangeLogToStream, System
from netevo.errors import DegenerateTemperatureWarning
from netevo.evolve import (
    BAD_PERFORMANCE,
    EvoInitialStates,
    EvolveSA,
    LoggingEvoObserver,
    Mutate,
    Performance,
    PerformanceType,
    RandomMutate,
    RewireMutate,
)
from netevo.library import (
    EigenratioPerformance,
    KuramotoNodeMap,
    RandomInitialStates,
    SynchronisationPerformance,
)
from netevo.simulate import SimulateMap


class ConstantPerformance(Performance):
    """Scores every system the same."""

    def __init__(self, value):
        self.value = value

    def performance(self, system, result=None):
        return self.value


class ArcCountPerformance(Performance):
    """Fewer arcs is better."""

    def performance(self, system, result=None):
        return float(system.count_arcs())


class NoMutate(Mutate):
    def mutate(self, system, changelog):
        pass


class DropEdge(Mutate):
    """Removes the first undirected edge, logging the erasures."""

    def mutate(self, system, changelog):
        arcs = system.arcs()
        if not arcs:
            return
        e = arcs[0]
        for arc in (e, system.find_arc(e.target, e.source)):
            if arc is not None and system.has_arc(arc):
                changelog.erase_arc(system, arc)
                system.erase_arc(arc)


class Isolate(Mutate):
    """Adds an isolated node, so every trial is disconnected."""

    def mutate(self, system, changelog):
        changelog.add_node(system, system.add_node())


class RecordingEvoObserver:
    def __init__(self):
        self.calls = []

    def __call__(self, system, perf, t):
        self.calls.append((t, perf))


def small_params(**overrides):
    params = dict(
        initial_trials=3,
        main_trials=4,
        accept_trials=2,
        accept_runs_no_change=1,
        max_iterations=40,
        seed=0,
    )
    params.update(overrides)
    return EvolveSAParams(**params)


@pytest.fixture
def ring():
    system = System(seed=11)
    system.ring_graph(12, 2, undirected=True)
    return system


class TestAcceptance:
    """Tests for the acceptance rule."""

    def test_improvement_always_accepted(self):
        """Test dQ > 0 gives probability 1."""
        params = EvolveSAParams()
        assert params.accept_prob(0.5, 1e-9) == 1.0
        assert params.accept_prob(0.5, 1e9) == 1.0

    def test_worse_rejected_when_cold(self):
        """Test non-improving trials vanish as temp -> 0+."""
        params = EvolveSAParams()
        assert params.accept_prob(-1.0, 1e-3) < 1e-100
        assert params.accept_prob(-1.0, 10.0) == pytest.approx(np.exp(-0.1))

    def test_ties_freeze_out(self):
        """Test equal scores are accepted when hot and rejected when cold."""
        params = EvolveSAParams()
        assert params.accept_prob(0.0, 1e-12) < 1e-6
        assert params.accept_prob(0.0, 1.0) == pytest.approx(1.0)

    def test_non_positive_temperature(self):
        """Test temp <= 0 never divides by zero."""
        params = EvolveSAParams()
        assert params.accept_prob(-1.0, 0.0) == 0.0
        assert params.accept_prob(-1.0, -2.0) == 0.0

    def test_trial_warns_at_zero_temperature(self, ring):
        """Test a degenerate temperature rejects with a warning."""
        engine = EvolveSA(small_params(), ConstantPerformance(1.0), NoMutate())
        with pytest.warns(DegenerateTemperatureWarning):
            trial_sys, result = engine.trial(0.0, ring, None, EvoInitialStates(), 1.0, ChangeLog())
        assert not result.accepted
        assert result.q2 == 1.0

    def test_trial_scores_mutated_clone(self, ring):
        """Test trials are scored after mutation."""
        engine = EvolveSA(small_params(), ArcCountPerformance(), DropEdge())
        q1 = float(ring.count_arcs())
        trial_sys, result = engine.trial(1.0, ring, None, EvoInitialStates(), q1, ChangeLog())
        assert result.q2 == q1 - 2
        assert result.dq == 2
        assert result.accepted
        assert ring.count_arcs() == q1
        assert trial_sys is not ring

    def test_disconnected_trial_rejected_unscored(self, ring):
        """Test disconnected trials are rejected without scoring."""
        engine = EvolveSA(small_params(), ArcCountPerformance(), Isolate())
        trial_sys, result = engine.trial(1.0, ring, None, EvoInitialStates(), 48.0, ChangeLog())
        assert not result.accepted
        assert result.q2 is None


class TestEvolveSA:
    """Tests for the annealing loop."""

    def test_never_worse_than_initial(self, ring):
        """Test the returned system scores no worse than the start."""
        perf = EigenratioPerformance()
        start = perf.performance(ring)
        engine = EvolveSA(quick_params(), perf, RewireMutate(seed=4))
        result = engine.evolve(ring)
        assert perf.performance(result) <= start
        assert result.weakly_connected_components() == 1
        assert result.count_arcs() == ring.count_arcs()

    def test_input_untouched(self, ring):
        """Test evolve works on a copy."""
        arcs = ring.arcs()
        engine = EvolveSA(small_params(), ArcCountPerformance(), DropEdge())
        result = engine.evolve(ring)
        assert ring.arcs() == arcs
        assert result is not ring

    def test_return_final(self, ring):
        """Test returning the final current system."""
        engine = EvolveSA(small_params(return_best=False), EigenratioPerformance(), RewireMutate(seed=1))
        result = engine.evolve(ring)
        assert isinstance(result, System)
        assert engine.results

    def test_observer_sequence(self, ring):
        """Test the observer sees iteration 0 and then every trial."""
        obs = RecordingEvoObserver()
        engine = EvolveSA(small_params(), EigenratioPerformance(), RewireMutate(seed=2))
        engine.evolve(ring, observer=obs)
        iterations = [t for t, _ in obs.calls]
        assert iterations[0] == 0
        assert iterations == list(range(len(iterations)))
        assert len(iterations) - 1 == len(engine.results)
        assert iterations[-1] <= 40

    def test_zero_temperature_skips_annealing(self, ring):
        """Test a non-positive start temperature returns the bootstrap clone."""
        obs = RecordingEvoObserver()
        engine = EvolveSA(small_params(), ConstantPerformance(0.0), RewireMutate(seed=3))
        result = engine.evolve(ring, observer=obs)
        assert obs.calls == [(0, 0.0)]
        assert result.arcs() == ring.arcs()
        assert engine.results == []

    def test_plateau_stops_on_no_change(self, ring):
        """Test a flat landscape ends through the no-change counter."""
        params = small_params(min_temp=0.0, max_iterations=5000)
        engine = EvolveSA(params, ConstantPerformance(1.0), NoMutate())
        engine.evolve(ring)
        assert len(engine.results) < params.max_iterations
        assert not any(r.accepted for r in engine.results[-2:])

    def test_changelog_framing(self, ring):
        """Test accepted trials are committed as evolution steps."""
        out = io.StringIO()
        params = small_params(ensure_weakly_connected=False)
        engine = EvolveSA(params, ArcCountPerformance(), DropEdge())
        engine.evolve(ring, changelog=ChangeLogToStream(out))
        lines = out.getvalue().splitlines()
        assert "--" in lines
        assert any(line.startswith("E-,") for line in lines)

    def test_rejected_trials_rolled_back(self, ring):
        """Test nothing of a rejected trial reaches the stream."""
        out = io.StringIO()
        engine = EvolveSA(small_params(), ArcCountPerformance(), Isolate())
        result = engine.evolve(ring, changelog=ChangeLogToStream(out))
        assert out.getvalue() == ""
        assert result.count_nodes() == ring.count_nodes()

    def test_logging_observer(self, ring, caplog):
        """Test progress is logged."""
        obs = LoggingEvoObserver()
        engine = EvolveSA(small_params(), EigenratioPerformance(), RewireMutate(seed=5))
        with caplog.at_level(logging.INFO, logger="netevo"):
            engine.evolve(ring, observer=obs)
        assert obs.history[0][0] == 0
        assert "At step 0, performance =" in caplog.text


class TestPerformanceEvaluation:
    """Tests for scoring with simulated dynamics."""

    @pytest.fixture
    def kuramoto(self):
        system = System(seed=8)
        system.add_node_dynamic(KuramotoNodeMap())
        system.ring_graph(5, 1, undirected=True, node_dynamic="KuramotoNodeMap")
        return system

    def test_dynamics_needs_simulator(self, kuramoto):
        """Test dynamics-dependent measures require a simulator."""
        engine = EvolveSA(small_params(), SynchronisationPerformance(), RewireMutate())
        with pytest.raises(ValueError):
            engine.evolve(kuramoto)

    def test_no_initial_states(self, kuramoto):
        """Test a missing initial state set scores badly."""
        engine = EvolveSA(small_params(), SynchronisationPerformance(), RewireMutate())
        assert engine.performance(kuramoto, SimulateMap(), EvoInitialStates()) == BAD_PERFORMANCE

    def test_mismatched_initial_states(self, kuramoto):
        """Test runs with wrong-sized states are skipped."""

        class Wrong(EvoInitialStates):
            def initial_states(self, system):
                return [np.zeros(2)]

        engine = EvolveSA(small_params(), SynchronisationPerformance(), RewireMutate())
        assert engine.performance(kuramoto, SimulateMap(), Wrong()) == BAD_PERFORMANCE

    def test_mean_over_runs(self, kuramoto):
        """Test dynamics scores average over initial states."""
        engine = EvolveSA(small_params(sim_t_max=5.0), SynchronisationPerformance(), RewireMutate())
        perf = engine.performance(kuramoto, SimulateMap(), RandomInitialStates(6.283, 3))
        assert 0.0 <= perf <= 100.0

    def test_evolve_with_dynamics(self, kuramoto):
        """Test a full run with a dynamics-dependent measure."""
        params = small_params(sim_t_max=3.0)
        engine = EvolveSA(params, SynchronisationPerformance(), RewireMutate(seed=9))
        result = engine.evolve(kuramoto, SimulateMap(), RandomInitialStates(6.283, 1))
        assert result.count_nodes() == 5

    def test_performance_type(self):
        """Test declared performance types."""
        assert EigenratioPerformance().get_type() is PerformanceType.TOPOLOGY_ONLY
        assert SynchronisationPerformance().get_type().needs_dynamics


class TestMutations:
    """Tests for mutation strategies."""

    def test_rewire_count_bounds(self):
        """Test rewire counts are clamped to [1, 10]."""
        mut = RewireMutate(seed=0)
        counts = [mut.rewire_count() for _ in range(500)]
        assert min(counts) >= 1
        assert max(counts) <= 10

    def test_rewire_keeps_edge_count(self, ring):
        """Test rewiring moves edges without creating or losing any."""
        before = set((e.source, e.target) for e in ring.arcs())
        changed = []
        for seed in range(3):
            trial = ring.copy()
            RewireMutate(seed=seed).mutate(trial, ChangeLog())
            assert trial.count_arcs() == 48
            for e in trial.arcs():
                assert trial.find_arc(e.target, e.source) is not None
            changed.append(set((e.source, e.target) for e in trial.arcs()) != before)
        assert any(changed)

    def test_rewire_complete_graph(self):
        """Test rewiring a complete graph terminates."""
        system = System(seed=2)
        system.random_graph(1.0, 4, undirected=True)
        RewireMutate(seed=2).mutate(system, ChangeLog())
        assert system.count_arcs() == 12

    def test_mutation_changes_performance(self, ring):
        """Test rewiring visibly changes the eigenratio."""
        perf = EigenratioPerformance()
        start = perf.performance(ring)
        mut = RewireMutate(seed=6)
        scores = []
        for _ in range(5):
            trial = ring.copy()
            mut.mutate(trial, ChangeLog())
            scores.append(perf.performance(trial))
        assert any(s != pytest.approx(start) for s in scores)

    def test_random_mutate_hooks(self, ring):
        """Test hooks fire with their probabilities."""
        mut = RandomMutate(seed=1, new_node=1.0)
        mut.mutate(ring, ChangeLog())
        assert ring.count_nodes() == 13
        assert ring.weakly_connected_components() == 1

        mut = RandomMutate(seed=1, del_edge=1.0, mutate_trials=3)
        arcs = ring.count_arcs()
        mut.mutate(ring, ChangeLog())
        assert ring.count_arcs() == arcs - 6

    def test_random_mutate_update_and_duplicate(self, ring):
        """Test weight updates stay symmetric and duplicates copy neighbours."""
        mut = RandomMutate(seed=3, upd_edge=1.0)
        mut.mutate(ring, ChangeLog())
        for e in ring.arcs():
            partner = ring.find_arc(e.target, e.source)
            assert ring.arc_data(e).weight == ring.arc_data(partner).weight

        mut = RandomMutate(seed=3, duplicate=1.0)
        mut.mutate(ring, ChangeLog())
        assert ring.count_nodes() == 13
        assert ring.count_arcs() == 48 + 8

    def test_random_mutate_never_fires_at_zero(self, ring):
        """Test zero probabilities change nothing."""
        arcs = ring.arcs()
        RandomMutate(seed=1, mutate_trials=10).mutate(ring, ChangeLog())
        assert ring.arcs() == arcs

    def test_random_mutate_unknown_hook(self):
        """Test misspelled hooks are rejected."""
        with pytest.raises(TypeError):
            RandomMutate(rewrie=0.5)
