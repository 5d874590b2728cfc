import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import numpy as np
import pytest

from anisotropic_eikonal import ACCEPTED, CONSIDERED, FAR, AnisotropicEikonal2D
from grid_utils import CellGrid, cartesian_grid, chain_grid, grid_from_adjacency, triangulated_grid
from metric_utils import constant_anisotropic_metric, isotropic_metric, metric_from_directions


def random_triangulation(n_points=80, seed=3):
    rng = np.random.RandomState(seed)
    corners = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    return triangulated_grid(np.vstack([corners, rng.uniform(0.0, 1.0, (n_points, 2))]))


def swirl_metric(grid):
    # Principal direction rotating about the domain centre, ratio 3
    d = grid.cell_centroids - 0.5
    return metric_from_directions(np.column_stack([-d[:, 1], d[:, 0]]), s_para=1.0, s_perp=3.0)


class InvariantChecker:
    """Observer checking front, queue and ordering invariants after each acceptance."""

    def __init__(self):
        self.values = []
        self.steps = 0

    def __call__(self, solver, cell, value):
        self.steps += 1
        self.values.append(value)
        accepted = solver.state == ACCEPTED
        assert np.array_equal(accepted, solver.accepted)

        expected_front = {c for c in np.nonzero(accepted)[0]
                          if not np.all(accepted[solver.cell_neighbours[c]])}
        assert solver.front.as_set() == expected_front

        assert len(solver.considered) == solver.considered.n_handles
        considered = {c for _, c in solver.considered}
        assert considered == set(np.nonzero(solver.state == CONSIDERED)[0])
        assert all(v >= value for v, _ in solver.considered)
        assert solver.solution[cell] == value


def test_all_start_cells_give_zero():
    for grid in (cartesian_grid(4, 3), chain_grid(6), random_triangulation(30)):
        n = grid.number_of_cells
        solver = AnisotropicEikonal2D(grid)
        T = solver.solve(isotropic_metric(n), range(n))
        assert np.array_equal(T, np.zeros(n))
        assert solver.n_iterations == 0
        assert len(solver.front) == 0


def test_empty_start_set_gives_all_infinity():
    grid = cartesian_grid(4, 4)
    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(isotropic_metric(16), [])
    assert T.shape == (16,)
    assert np.all(np.isposinf(T))
    assert np.all(solver.state == FAR)


def test_invariants_hold_at_every_step():
    grid = random_triangulation()
    metric = swirl_metric(grid)
    checker = InvariantChecker()
    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(metric, [0, 17], observer=checker)

    assert checker.steps == grid.number_of_cells - 2
    assert np.all(np.isfinite(T))
    assert np.all(solver.state == ACCEPTED)
    # Acceptance order is causal: values never decrease
    assert np.all(np.diff(T[solver.accepted_order]) >= 0.0)
    assert np.all(np.diff(checker.values) >= 0.0)


def test_acceptance_order_non_decreasing_on_cartesian_grid():
    grid = cartesian_grid(15, 12, 1.5, 1.2)
    metric = constant_anisotropic_metric(grid.number_of_cells, 1.0, 2.5, theta=0.4)
    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(metric, [40])
    order = np.array(solver.accepted_order)
    assert order[0] == 40
    assert sorted(order) == list(range(grid.number_of_cells))
    assert np.all(np.diff(T[order]) >= 0.0)


def test_reused_solver_is_idempotent():
    grid = random_triangulation()
    metric = swirl_metric(grid)
    solver = AnisotropicEikonal2D(grid)
    T1 = solver.solve(metric, [5])
    order1 = list(solver.accepted_order)

    # A different run in between must not leak state
    solver.solve(isotropic_metric(grid.number_of_cells, 3.0), [1, 2, 3])

    T2 = solver.solve(metric, [5])
    assert np.array_equal(T1, T2)
    assert order1 == solver.accepted_order
    assert np.array_equal(T1, AnisotropicEikonal2D(grid).solve(metric, [5]))


def test_disconnected_component_stays_infinite():
    mask = np.ones((4, 7), dtype=bool)
    mask[:, 3] = False
    grid = cartesian_grid(7, 4, 7.0, 4.0, mask=mask)
    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(isotropic_metric(grid.number_of_cells), [0])

    right = grid.structured_index[:, 1] >= 4
    assert np.all(np.isposinf(T[right]))
    assert np.all(np.isfinite(T[~right]))
    assert np.all(solver.state[right] == FAR)


def test_duplicate_start_cells_are_collapsed():
    grid = chain_grid(4)
    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(isotropic_metric(4), [1, 1, 1])
    assert np.allclose(T, [1.0, 0.0, 1.0, 2.0])
    assert solver.accepted_order[0] == 1 and solver.accepted_order.count(1) == 1


def test_flat_metric_input():
    grid = chain_grid(3)
    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(np.tile([4.0, 0.0, 0.0, 4.0], 3), {0})
    assert np.allclose(T, [0.0, 2.0, 4.0])


def test_non_2d_grid_is_rejected():
    grid = CellGrid(number_of_cells=2, cell_centroids=np.zeros((2, 3)), dimensions=3,
                    neighbours=[np.array([1]), np.array([0])])
    with pytest.raises(ValueError):
        AnisotropicEikonal2D(grid)


def test_input_errors():
    grid = chain_grid(3)
    solver = AnisotropicEikonal2D(grid)
    with pytest.raises(ValueError):
        solver.solve(isotropic_metric(2), [0])
    with pytest.raises(ValueError):
        solver.solve(isotropic_metric(3), [3])
    with pytest.raises(ValueError):
        solver.solve(isotropic_metric(3), [-1])


def test_stencil_without_front_neighbour_fails_fast():
    solver = AnisotropicEikonal2D(chain_grid(3))
    with pytest.raises(RuntimeError):
        solver.compute_value(1)


def test_iteration_bound():
    solver = AnisotropicEikonal2D(chain_grid(5), max_iterations=2)
    with pytest.raises(RuntimeError):
        solver.solve(isotropic_metric(5), [0])


def test_proximity_predicate():
    grid = cartesian_grid(6, 1, 6.0, 1.0)
    solver = AnisotropicEikonal2D(grid)
    # local spacing 1, ratio 2 -> proximity radius 2
    solver.solve(constant_anisotropic_metric(6, 1.0, 2.0), [0])
    assert solver.is_close(0, 1)
    assert solver.is_close(0, 2)
    assert not solver.is_close(0, 3)


def test_proximity_radius_uses_local_spacing():
    # One far outlier must not widen the range of the closely spaced cells
    grid = grid_from_adjacency([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [10.0, 0.0]],
                               [[1], [0, 2], [1, 3], [2]])
    solver = AnisotropicEikonal2D(grid)
    solver.solve(isotropic_metric(4), [0])
    assert np.allclose(solver.close_radius, [1.0, 1.0, 8.0, 8.0])
    assert not solver.is_close(0, 2)
    assert solver.is_close(2, 0)


def test_triangle_relaxation_tightens_line_value():
    # 3 x 3 unit cells, start in the lower-left corner. Cell 5 enters with the
    # line value 1 + sqrt(2) from cell 1 and is lowered by the wedge (4, 1)
    # once cell 4 is accepted.
    grid = cartesian_grid(3, 3, 3.0, 3.0)
    line_value = 1.0 + np.sqrt(2.0)
    tri_value = np.sqrt(2.0) + np.sqrt(2.0 * np.sqrt(2.0) - 2.0)
    seen = {}

    def record(solver, cell, value):
        seen[cell] = (solver.state[5], solver.solution[5])

    solver = AnisotropicEikonal2D(grid)
    T = solver.solve(isotropic_metric(9), [0], observer=record)

    assert solver.accepted_order[:4] == [0, 1, 3, 4]
    assert seen[1][0] == CONSIDERED and np.isclose(seen[1][1], line_value)
    assert np.isclose(seen[3][1], line_value)
    assert seen[4][0] == CONSIDERED and np.isclose(seen[4][1], tri_value)
    assert np.isclose(T[5], tri_value)
    assert np.isclose(T[7], tri_value)
    assert solver.n_relaxations >= 1


class RecordingSolver(AnisotropicEikonal2D):
    """Solver that logs every stencil evaluation."""

    def __init__(self, grid):
        super().__init__(grid)
        self.evaluated = []

    def compute_value(self, cell):
        self.evaluated.append(int(cell))
        return super().compute_value(cell)


def test_relaxation_only_touches_neighbours_of_accepted_cell():
    rng = np.random.RandomState(7)
    # Outlying point gives a few long boundary cells
    points = np.vstack([rng.uniform(0.0, 1.0, (150, 2)), [[6.0, 0.5]]])
    grid = triangulated_grid(points)
    solver = RecordingSolver(grid)
    starts = [0]
    allowed_first = set(int(nb) for nb in solver.cell_neighbours[0])

    def check(solver, cell, value):
        allowed = set(int(nb) for nb in solver.cell_neighbours[cell])
        if solver.n_iterations == 1:
            allowed |= allowed_first
        assert set(solver.evaluated) <= allowed
        solver.evaluated.clear()

    T = solver.solve(swirl_metric(grid), starts, observer=check)
    assert np.all(np.isfinite(T))


def test_non_integer_start_cells_are_rejected():
    solver = AnisotropicEikonal2D(chain_grid(3))
    with pytest.raises(ValueError):
        solver.solve(isotropic_metric(3), [1.7])
    with pytest.raises(ValueError):
        solver.solve(isotropic_metric(3), [1.0])
    T = solver.solve(isotropic_metric(3), np.array([1], dtype=np.int64))
    assert np.allclose(T, [1.0, 0.0, 1.0])




def test_verbose_reports_summary(capsys):
    solver = AnisotropicEikonal2D(chain_grid(3), verbose=True)
    solver.solve(isotropic_metric(3), [0])
    out = capsys.readouterr().out
    assert "Grid Information" in out
    assert "Computation Performance" in out
    assert "Reached cells: 3 / 3" in out


if __name__ == '__main__':
    test_all_start_cells_give_zero()
    test_empty_start_set_gives_all_infinity()
    test_invariants_hold_at_every_step()
    test_acceptance_order_non_decreasing_on_cartesian_grid()
    test_reused_solver_is_idempotent()
    test_disconnected_component_stays_infinite()
    test_triangle_relaxation_tightens_line_value()
    test_relaxation_only_touches_neighbours_of_accepted_cell()
    print('solver invariant tests: OK')
