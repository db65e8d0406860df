"""Hydrothermal-time germination model and response-surface grids."""
import numpy as np
import pandas as pd
from scipy import stats

from utils.constants import TRAIT_COLS


def germination_fraction(temperature, water_potential, days, base_temp, theta_ht, psi_b50, sigma_psib):
    """Cumulative germination fraction under the hydrothermal-time model.

    G = Phi((psi - theta_HT / ((T - T_b) * t) - psi_b50) / sigma_psib)

    Works elementwise on arrays. Temperatures at or below the base
    temperature give zero germination.
    """
    if sigma_psib <= 0:
        raise ValueError(f"sigma_psib must be positive, got {sigma_psib}")
    if np.any(np.asarray(days) <= 0):
        raise ValueError("days must be positive")

    temperature = np.asarray(temperature, dtype=float)
    water_potential = np.asarray(water_potential, dtype=float)
    thermal = temperature - base_temp
    above = thermal > 0
    with np.errstate(divide="ignore", invalid="ignore"):
        psi_b = water_potential - theta_ht / (np.where(above, thermal, 1.0) * days)
    frac = stats.norm.cdf((psi_b - psi_b50) / sigma_psib)
    return np.where(above, frac, 0.0)


def response_surface(params, temperatures, water_potentials, days):
    """Germination fraction over a temperature x water-potential grid.

    Returns a DataFrame indexed by water potential with one column per
    temperature.
    """
    T, W = np.meshgrid(np.asarray(temperatures, dtype=float), np.asarray(water_potentials, dtype=float))
    z = germination_fraction(T, W, days, **params)
    grid = pd.DataFrame(z, index=pd.Index(water_potentials, name="water_potential_mpa"),
                        columns=pd.Index(temperatures, name="temperature_c"))
    return grid


def species_parameters(traits, species):
    """Model parameters for one species row of a Trait Table."""
    if species not in traits.index:
        raise KeyError(f"species '{species}' not in trait table")
    row = traits.loc[species, TRAIT_COLS]
    return {
        "base_temp": float(row["base_temp_c"]),
        "theta_ht": float(row["theta_ht"]),
        "psi_b50": float(row["psi_b50"]),
        "sigma_psib": float(row["sigma_psib"]),
    }


def time_course(params, temperature, water_potential, days):
    """Germination fraction over time at one temperature and water potential."""
    days = np.asarray(days, dtype=float)
    frac = germination_fraction(temperature, water_potential, days, **params)
    return pd.Series(frac, index=pd.Index(days, name="day"), name="germination_fraction")
