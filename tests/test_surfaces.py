import numpy as np
import pandas as pd
import pytest

from utils.surfaces import germination_fraction, response_surface, species_parameters, time_course

PARAMS = {"base_temp": 5.0, "theta_ht": 60.0, "psi_b50": -1.0, "sigma_psib": 0.3}


def test_no_germination_at_or_below_base_temperature():
    frac = germination_fraction([2.0, 5.0], [0.0, 0.0], 30, **PARAMS)
    assert np.all(frac == 0.0)


def test_fraction_bounded_and_monotone_in_water_potential():
    psi = np.linspace(-3.0, 0.0, 31)
    frac = germination_fraction(np.full_like(psi, 20.0), psi, 10, **PARAMS)
    assert np.all((frac >= 0.0) & (frac <= 1.0))
    assert np.all(np.diff(frac) >= 0)


def test_fraction_increases_with_time_and_temperature():
    early = germination_fraction(15.0, -0.5, 2, **PARAMS)
    late = germination_fraction(15.0, -0.5, 20, **PARAMS)
    warm = germination_fraction(25.0, -0.5, 2, **PARAMS)
    assert late > early
    assert warm > early


def test_sentinel_hydrothermal_time_means_no_germination():
    dormant = dict(PARAMS, theta_ht=10000.0, psi_b50=0.0)
    frac = germination_fraction(25.0, 0.0, 30, **dormant)
    assert frac < 1e-6


def test_invalid_parameters_raise():
    with pytest.raises(ValueError):
        germination_fraction(20.0, -0.5, 10, **dict(PARAMS, sigma_psib=0.0))
    with pytest.raises(ValueError):
        germination_fraction(20.0, -0.5, 0, **PARAMS)


def test_response_surface_grid_shape():
    temps = np.linspace(0, 30, 7)
    psis = np.linspace(-2, 0, 5)
    grid = response_surface(PARAMS, temps, psis, 14)
    assert grid.shape == (5, 7)
    assert grid.index.name == "water_potential_mpa"
    assert grid.columns.name == "temperature_c"
    assert (grid[0.0] == 0.0).all()


def test_species_parameters_and_time_course():
    traits = pd.DataFrame(
        {"base_temp_c": [5.0], "theta_ht": [60.0], "psi_b50": [-1.0], "sigma_psib": [0.3]},
        index=pd.Index(["Bromus tectorum"], name="species"),
    )
    params = species_parameters(traits, "Bromus tectorum")
    assert params == PARAMS

    tc = time_course(params, 20.0, -0.5, np.arange(1, 31))
    assert len(tc) == 30
    assert tc.is_monotonic_increasing

    with pytest.raises(KeyError):
        species_parameters(traits, "Poa secunda")
