import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import numpy as np
import pytest

from metric_utils import (anisotropy_ratio, as_metric_array, constant_anisotropic_metric,
                          isotropic_metric, metric_from_directions, metric_length)


def test_flat_metric_is_reshaped_per_cell():
    flat = [1.0, 0.0, 0.0, 1.0, 4.0, 1.0, 1.0, 2.0]
    M = as_metric_array(flat, 2)
    assert M.shape == (2, 2, 2)
    assert np.array_equal(M[1], [[4.0, 1.0], [1.0, 2.0]])


def test_invalid_metrics_are_rejected():
    with pytest.raises(ValueError):
        as_metric_array(np.eye(2)[None].repeat(3, axis=0), 2)
    with pytest.raises(ValueError):
        as_metric_array([[[1.0, 0.5], [0.0, 1.0]]], 1)
    with pytest.raises(ValueError):
        as_metric_array([[[1.0, 0.0], [0.0, -1.0]]], 1)
    with pytest.raises(ValueError):
        as_metric_array([[[1.0, 2.0], [2.0, 1.0]]], 1)
    with pytest.raises(ValueError):
        as_metric_array([[[np.nan, 0.0], [0.0, 1.0]]], 1)


def test_anisotropy_ratio():
    M = np.array([np.eye(2), np.diag([1.0, 4.0]), np.diag([9.0, 1.0])])
    assert np.allclose(anisotropy_ratio(M), [1.0, 2.0, 3.0])


def test_isotropic_metric_from_slowness():
    M = isotropic_metric(3, slowness=[1.0, 2.0, 0.5])
    assert np.allclose(M[1], 4.0 * np.eye(2))
    assert np.isclose(metric_length(M[2], [2.0, 0.0]), 1.0)


def test_principal_direction_metric():
    M = constant_anisotropic_metric(2, s_para=1.0, s_perp=2.0, theta=np.pi / 2)
    assert np.allclose(M[0], np.diag([4.0, 1.0]))
    # Unit step along the principal direction costs s_para
    theta = np.pi / 6
    M = constant_anisotropic_metric(1, s_para=3.0, s_perp=1.0, theta=theta)[0]
    assert np.isclose(metric_length(M, [np.cos(theta), np.sin(theta)]), 3.0)
    assert np.isclose(metric_length(M, [-np.sin(theta), np.cos(theta)]), 1.0)


def test_metric_from_directions_handles_zero_vectors():
    M = metric_from_directions(np.array([[0.0, 0.0], [0.0, 5.0]]), s_para=2.0, s_perp=1.0)
    assert np.allclose(M[0], np.diag([4.0, 1.0]))
    assert np.allclose(M[1], np.diag([1.0, 4.0]))


if __name__ == '__main__':
    test_flat_metric_is_reshaped_per_cell()
    test_invalid_metrics_are_rejected()
    test_anisotropy_ratio()
    test_principal_direction_metric()
    print('metric utils tests: OK')
