"""Shared constants: file paths, trait columns, colors, clustering defaults."""
import os

DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")

FIELD_TRIAL_PATH = os.path.join(DATA_DIR, "field_trial.csv")
TRAITS_PATH = os.path.join(DATA_DIR, "germination_traits.csv")
ROUTES_PATH = os.path.join(DATA_DIR, "introduction_routes.csv")

# ── Field trial ──────────────────────────────────────────────────────────────
FIELD_TRIAL_COLS = ["plant_id", "population", "treatment", "block", "height_cm", "biomass_g", "flowered"]
FIELD_RESPONSES = ["height_cm", "biomass_g"]

TREATMENT_COLORS = {
    "control": "#264653",
    "drought": "#E76F51",
    "nitrogen": "#2A9D8F",
    "shade": "#F4A261",
}

# ── Germination traits ───────────────────────────────────────────────────────
SPECIES_COL = "species"

TRAIT_COLS = ["base_temp_c", "theta_ht", "psi_b50", "sigma_psib"]

TRAIT_LABELS = {
    "base_temp_c": "Base Temperature (°C)",
    "theta_ht": "Hydrothermal Time (MPa °C d)",
    "psi_b50": "Median Base Water Potential (MPa)",
    "sigma_psib": "SD of Base Water Potential (MPa)",
}

# -999 marks "no germination observed". Hydrothermal time is replaced with a
# value large enough that the modelled germination fraction is ~0.
MISSING_SENTINEL = -999
SENTINEL_REPLACEMENTS = {
    "base_temp_c": 0.0,
    "theta_ht": 10000.0,
    "psi_b50": 0.0,
    "sigma_psib": 1.0,
}

# ── Introduction routes ──────────────────────────────────────────────────────
ROUTE_COLS = ["species", "origin", "origin_lat", "origin_lon",
              "destination", "dest_lat", "dest_lon", "year"]

# ── Clustering ───────────────────────────────────────────────────────────────
DEFAULT_SEED = 42
DEFAULT_RESTARTS = 25
K_CANDIDATES = range(1, 11)

CLUSTER_COLORS = [
    "#2A9D8F", "#E76F51", "#264653", "#F4A261", "#8AB17D",
    "#577590", "#FF9F1C", "#3D5A80", "#43AA8B", "#B56576",
]
CLUSTER_SYMBOLS = ["circle", "square", "diamond", "cross", "x",
                   "triangle-up", "triangle-down", "star", "hexagon", "pentagon"]

PART_TITLES = {
    "I": "Field Trial Models",
    "II": "Trait Clustering",
    "III": "Response Surfaces",
    "IV": "Invasion Networks",
}
