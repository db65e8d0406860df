"""Write reproducible synthetic CSVs for every analysis page into data/.

Usage: python make_sample_data.py [output_dir]
"""
import os
import sys

import numpy as np
import pandas as pd

from utils.constants import DATA_DIR, MISSING_SENTINEL

SEED = 2024

TREATMENT_EFFECTS = {"control": 0.0, "drought": -9.0, "nitrogen": 6.0, "shade": -4.0}
POPULATION_EFFECTS = {"Coastal": 2.5, "Inland": 0.0, "Montane": -3.0}
N_BLOCKS = 6
PLANTS_PER_CELL = 5

# (base temp, hydrothermal time, psi_b50, sigma) centres for three germination strategies
STRATEGIES = {
    "fast_warm": (8.0, 40.0, -1.2, 0.25),
    "slow_cool": (2.0, 120.0, -0.6, 0.15),
    "drought_tolerant": (5.0, 70.0, -1.8, 0.40),
}
SPECIES_PER_STRATEGY = 7
DORMANT_SPECIES = ["Bromus tectorum var. dormans", "Poa secunda ssp. juncifolia", "Elymus elymoides (seed lot B)"]

LOCATIONS = {
    "Mediterranean Basin": (38.0, 15.0),
    "Central Asia": (43.0, 68.0),
    "Eastern Europe": (50.0, 30.0),
    "East Asia": (35.0, 120.0),
    "South Africa": (-30.0, 24.0),
    "Great Basin": (40.0, -117.0),
    "California": (37.0, -120.0),
    "Pampas": (-35.0, -62.0),
    "Southeast Australia": (-35.0, 146.0),
    "New Zealand": (-42.0, 173.0),
    "Chile": (-33.0, -71.0),
}
INVADERS = {
    "Bromus tectorum": ["Mediterranean Basin", "Central Asia"],
    "Taeniatherum caput-medusae": ["Mediterranean Basin"],
    "Salsola tragus": ["Central Asia", "Eastern Europe"],
    "Centaurea solstitialis": ["Mediterranean Basin", "Eastern Europe"],
    "Eragrostis curvula": ["South Africa"],
    "Ailanthus altissima": ["East Asia"],
    "Ulex europaeus": ["Mediterranean Basin"],
}
RECIPIENTS = ["Great Basin", "California", "Pampas", "Southeast Australia", "New Zealand", "Chile"]


def make_field_trial(rng):
    rows = []
    block_effects = rng.normal(0, 4.0, N_BLOCKS)
    block_logit = rng.normal(0, 0.6, N_BLOCKS)
    pid = 1
    for b in range(N_BLOCKS):
        for trt, t_eff in TREATMENT_EFFECTS.items():
            for pop, p_eff in POPULATION_EFFECTS.items():
                for _ in range(PLANTS_PER_CELL):
                    height = 45.0 + t_eff + p_eff + block_effects[b] + rng.normal(0, 5.0)
                    biomass = max(0.5, 0.12 * height + rng.normal(0, 0.8))
                    eta = -6.0 + 0.13 * height + (0.5 if trt == "nitrogen" else 0.0) + block_logit[b]
                    flowered = int(rng.random() < 1.0 / (1.0 + np.exp(-eta)))
                    rows.append({
                        "plant_id": f"P{pid:04d}",
                        "population": pop,
                        "treatment": trt,
                        "block": f"B{b + 1}",
                        "height_cm": round(height, 1),
                        "biomass_g": round(biomass, 2),
                        "flowered": flowered,
                    })
                    pid += 1
    return pd.DataFrame(rows)


def make_germination_traits(rng):
    rows = []
    for strategy, (tb, theta, psi, sigma) in STRATEGIES.items():
        for i in range(SPECIES_PER_STRATEGY):
            rows.append({
                "species": f"{strategy.replace('_', ' ').title()} sp. {i + 1}",
                "base_temp_c": round(tb + rng.normal(0, 1.0), 2),
                "theta_ht": round(theta * rng.lognormal(0, 0.15), 1),
                "psi_b50": round(psi + rng.normal(0, 0.12), 3),
                "sigma_psib": round(max(0.05, sigma + rng.normal(0, 0.04)), 3),
            })
    for name in DORMANT_SPECIES:
        rows.append({
            "species": name,
            "base_temp_c": round(rng.uniform(2, 8), 2),
            "theta_ht": MISSING_SENTINEL,
            "psi_b50": MISSING_SENTINEL,
            "sigma_psib": round(rng.uniform(0.1, 0.4), 3),
        })
    return pd.DataFrame(rows)


def make_routes(rng):
    rows = []
    for species, sources in INVADERS.items():
        n_dest = rng.integers(2, len(RECIPIENTS) + 1)
        for dest in rng.choice(RECIPIENTS, size=n_dest, replace=False):
            origin = sources[rng.integers(len(sources))]
            o_lat, o_lon = LOCATIONS[origin]
            d_lat, d_lon = LOCATIONS[dest]
            rows.append({
                "species": species,
                "origin": origin,
                "origin_lat": o_lat,
                "origin_lon": o_lon,
                "destination": dest,
                "dest_lat": d_lat,
                "dest_lon": d_lon,
                "year": int(rng.integers(1850, 1990)),
            })
    return pd.DataFrame(rows)


def main():
    out_dir = sys.argv[1] if len(sys.argv) > 1 else DATA_DIR
    os.makedirs(out_dir, exist_ok=True)
    rng = np.random.default_rng(SEED)

    tables = {
        "field_trial.csv": make_field_trial(rng),
        "germination_traits.csv": make_germination_traits(rng),
        "introduction_routes.csv": make_routes(rng),
    }
    for name, df in tables.items():
        path = os.path.join(out_dir, name)
        df.to_csv(path, index=False)
        print(f"  -> {path}: {len(df):,} rows")

    print(f"\nDone! Wrote {len(tables)} files to {out_dir}")


if __name__ == "__main__":
    main()
