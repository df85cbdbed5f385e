"""
Tests for pairwise elastic collisions.

Covers the textbook two-body exchange, conservation laws, once-per-pair
resolution on both detection paths, and the degenerate-contact guards.
"""

import numpy as np
import pytest

import particle_sim
from particle_sim.config import ConfigurationError
from particle_sim.physics.collisions import (COINCIDENT, RESOLVED, SEPARATING, CollisionPair,
                                             canonical_pair, choose_method,
                                             collect_grid_candidates, compute_impulse,
                                             deduplicate_pairs, detect_collisions_bruteforce,
                                             detect_collisions_grid, resolve_collisions)
from particle_sim.core.spatial_hash_vectorized import SpatialGrid

METHODS = ["bruteforce", "grid"]


def random_cloud(make_particles, n=120, seed=0, spread=150.0):
    rng = np.random.default_rng(seed)
    particles = make_particles(rng.uniform(-spread, spread, (n, 2)),
                               rng.uniform(-50, 50, (n, 2)))
    particles.mass[:] = rng.uniform(3.0, 9.0, n)
    return particles


class TestImpulse:

    def test_canonical_pair(self):
        assert canonical_pair(7, 2) == (2, 7)
        assert canonical_pair(2, 7) == (2, 7)

    def test_head_on_equal_mass_swaps_velocities(self):
        pair = CollisionPair(0, 1, (-5.0, 0.0), (5.0, 0.0), (1.0, 0.0), (-1.0, 0.0), 10.0, 10.0)
        status, dv_a, dv_b = compute_impulse(pair, restitution=1.0)
        assert status == RESOLVED
        np.testing.assert_allclose(np.add(pair.velocity_a, dv_a), [-1.0, 0.0])
        np.testing.assert_allclose(np.add(pair.velocity_b, dv_b), [1.0, 0.0])

    def test_unit_masses_exchange_velocity(self):
        pair = CollisionPair(0, 1, (0.0, 0.0), (1.0, 0.0), (1.0, 0.0), (0.0, 0.0), 1.0, 1.0)
        _, dv_a, dv_b = compute_impulse(pair, restitution=1.0)
        np.testing.assert_allclose(np.add(pair.velocity_a, dv_a), [0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(np.add(pair.velocity_b, dv_b), [1.0, 0.0])

    def test_separating_pair_skipped(self):
        pair = CollisionPair(0, 1, (-5.0, 0.0), (5.0, 0.0), (-1.0, 0.0), (1.0, 0.0), 10.0, 10.0)
        status, dv_a, dv_b = compute_impulse(pair, restitution=1.0)
        assert status == SEPARATING
        assert not np.any(dv_a) and not np.any(dv_b)

    def test_coincident_pair_skipped(self):
        pair = CollisionPair(0, 1, (3.0, 3.0), (3.0, 3.0), (1.0, 0.0), (-1.0, 0.0), 10.0, 10.0)
        status, dv_a, dv_b = compute_impulse(pair, restitution=1.0)
        assert status == COINCIDENT
        assert np.all(np.isfinite(dv_a)) and np.all(np.isfinite(dv_b))

    def test_inelastic_kills_normal_approach(self):
        pair = CollisionPair(0, 1, (0.0, 0.0), (0.0, 8.0), (0.0, 3.0), (2.0, -1.0), 4.0, 6.0)
        _, dv_a, dv_b = compute_impulse(pair, restitution=0.0)
        va = np.add(pair.velocity_a, dv_a)
        vb = np.add(pair.velocity_b, dv_b)
        assert (va - vb)[1] == pytest.approx(0.0, abs=1e-12)
        # tangential components untouched
        assert va[0] == pytest.approx(0.0)
        assert vb[0] == pytest.approx(2.0)


class TestResolveCollisions:

    @pytest.mark.parametrize("method", METHODS)
    def test_swap_scenario(self, make_particles, method):
        particles = make_particles([[-5.0, 0.0], [5.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]])
        report = resolve_collisions(particles, restitution=1.0, method=method)

        assert report.resolved == 1
        np.testing.assert_allclose(particles.get_velocities(), [[-1.0, 0.0], [1.0, 0.0]])
        # positions are never touched by the collision stage
        np.testing.assert_array_equal(particles.get_positions(), [[-5.0, 0.0], [5.0, 0.0]])

    @pytest.mark.parametrize("method", METHODS)
    def test_momentum_conserved(self, make_particles, method):
        particles = random_cloud(make_particles, seed=1, spread=60.0)
        before = particles.momentum()
        report = resolve_collisions(particles, restitution=0.7, method=method)
        assert report.resolved > 0
        np.testing.assert_allclose(particles.momentum(), before, atol=1e-9)

    def test_energy_conserved_for_isolated_elastic_pair(self, make_particles):
        particles = make_particles([[0.0, 0.0], [6.0, 8.0]], [[2.0, 5.0], [-3.0, -1.0]])
        particles.mass[:] = [4.0, 7.0]
        before = particles.kinetic_energy()
        resolve_collisions(particles, restitution=1.0)
        assert particles.kinetic_energy() == pytest.approx(before)

    def test_each_pair_resolved_once_on_grid(self, make_particles):
        particles = make_particles([[-5.0, 0.0], [5.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]])
        report = resolve_collisions(particles, restitution=1.0, method="grid")

        # seen once from each particle's scan, resolved once
        assert report.candidates == 2
        assert report.duplicates == 1
        assert report.pairs == 1
        assert report.resolved_pairs == [(0, 1)]

    @pytest.mark.parametrize("method", METHODS)
    def test_no_pair_resolved_twice(self, make_particles, method):
        particles = random_cloud(make_particles, seed=5, spread=50.0)
        report = resolve_collisions(particles, restitution=1.0, method=method)
        assert len(report.resolved_pairs) == len(set(report.resolved_pairs))
        assert all(a < b for a, b in report.resolved_pairs)

    def test_grid_matches_bruteforce(self, make_particles):
        for seed in range(4):
            brute = random_cloud(make_particles, n=200, seed=seed)
            grid = brute.copy()
            report_brute = resolve_collisions(brute, 1.0, method="bruteforce")
            report_grid = resolve_collisions(grid, 1.0, method="grid")

            assert sorted(report_brute.resolved_pairs) == sorted(report_grid.resolved_pairs)
            np.testing.assert_allclose(grid.get_velocities(), brute.get_velocities(), atol=1e-9)

    def test_result_independent_of_particle_order(self, make_particles):
        # Middle particle touches both neighbours in the same tick
        positions = [[-9.0, 0.0], [0.0, 0.0], [9.0, 0.0]]
        velocities = [[3.0, 0.0], [0.0, 0.0], [-2.0, 0.0]]
        particles = make_particles(positions, velocities, mass=5.0)
        resolve_collisions(particles, 1.0, method="bruteforce")

        order = [2, 0, 1]
        permuted = make_particles(np.take(positions, order, axis=0),
                                  np.take(velocities, order, axis=0), mass=5.0)
        resolve_collisions(permuted, 1.0, method="grid")

        np.testing.assert_allclose(permuted.get_velocities(),
                                   particles.get_velocities()[order], atol=1e-12)

    def test_coincident_particles_stay_finite(self, make_particles):
        particles = make_particles([[1.0, 1.0], [1.0, 1.0]], [[1.0, 0.0], [-1.0, 0.0]])
        report = resolve_collisions(particles, 1.0)
        assert report.coincident == 1
        assert report.resolved == 0
        assert np.all(np.isfinite(particles.get_velocities()))
        np.testing.assert_array_equal(particles.get_velocities(), [[1.0, 0.0], [-1.0, 0.0]])

    def test_separating_overlap_untouched(self, make_particles):
        particles = make_particles([[-5.0, 0.0], [5.0, 0.0]], [[-1.0, 0.0], [1.0, 0.0]])
        report = resolve_collisions(particles, 1.0)
        assert report.separating == 1
        np.testing.assert_array_equal(particles.get_velocities(), [[-1.0, 0.0], [1.0, 0.0]])

    def test_just_out_of_reach(self, make_particles):
        particles = make_particles([[-10.0, 0.0], [10.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]])
        report = resolve_collisions(particles, 1.0)
        assert report.candidates == 0

    def test_single_particle(self, make_particles):
        particles = make_particles([[0.0, 0.0]], [[1.0, 1.0]])
        for method in METHODS:
            assert resolve_collisions(particles, 1.0, method=method).resolved == 0

    def test_restitution_validated(self, make_particles):
        particles = make_particles([[0.0, 0.0], [1.0, 0.0]])
        with pytest.raises(ConfigurationError):
            resolve_collisions(particles, 1.5)

    def test_api_entry_point(self, make_particles):
        particles = make_particles([[-5.0, 0.0], [5.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]])
        report = particle_sim.resolve_collisions(particles, 1.0, method="auto")
        assert report.method == "bruteforce"
        assert report.resolved == 1


class TestDetection:

    def test_grid_candidates_hold_duplicates(self, make_particles):
        positions = np.array([[0.0, 0.0], [5.0, 0.0], [100.0, 100.0]])
        mass = np.full(3, 10.0)
        grid = SpatialGrid(20.0)
        for i, (x, y) in enumerate(positions):
            grid.insert(i, x, y)

        hits = collect_grid_candidates(positions, mass, grid)
        assert sorted(hits) == [(0, 1), (1, 0)]
        assert deduplicate_pairs(hits) == [(0, 1)]

    def test_bruteforce_and_grid_find_same_pairs(self):
        rng = np.random.default_rng(9)
        positions = rng.uniform(-100, 100, (300, 2))
        velocities = np.zeros((300, 2))
        mass = rng.uniform(2.0, 6.0, 300)

        brute = {p.key for p in detect_collisions_bruteforce(positions, velocities, mass)}
        grid_pairs, n_raw = detect_collisions_grid(positions, velocities, mass)
        grid = {p.key for p in grid_pairs}

        assert brute == grid
        assert n_raw == 2 * len(grid)

    def test_choose_method(self):
        assert choose_method(10, "auto", grid_threshold=64) == "bruteforce"
        assert choose_method(65, "auto", grid_threshold=64) == "grid"
        assert choose_method(10, "grid") == "grid"
        with pytest.raises(ConfigurationError):
            choose_method(10, "octree")
