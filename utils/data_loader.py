"""CSV loading, validation and sentinel substitution."""
import logging

import pandas as pd
import streamlit as st

from utils.constants import (
    FIELD_TRIAL_COLS, MISSING_SENTINEL, ROUTE_COLS, SENTINEL_REPLACEMENTS, SPECIES_COL, TRAIT_COLS,
)

logger = logging.getLogger(__name__)


class DataQualityError(ValueError):
    """Raised when an input table is missing, malformed or fails validation."""


def read_table(path, required_columns=(), id_column=None):
    """Read a header-row CSV and check that the expected columns are present."""
    try:
        df = pd.read_csv(path)
    except FileNotFoundError:
        raise DataQualityError(f"{path}: file not found") from None
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataQualityError(f"{path}: could not parse CSV ({e})") from e

    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        raise DataQualityError(f"{path}: missing required column(s) {missing}")

    if id_column is not None:
        if id_column not in df.columns:
            raise DataQualityError(f"{path}: missing identifier column '{id_column}'")
        dupes = df.loc[df[id_column].duplicated(), id_column].unique().tolist()
        if dupes:
            raise DataQualityError(f"{path}: column '{id_column}' has duplicate identifiers {dupes}")

    logger.info("Loaded %s (%d rows, %d columns)", path, len(df), df.shape[1])
    return df


def replace_sentinels(df, columns, sentinel=MISSING_SENTINEL, replacement=None):
    """Swap a "not observed" sentinel for a fixed value in the given columns.

    ``replacement`` is a scalar applied to every column, or a mapping of
    column name to value. Columns absent from a mapping are left alone.
    """
    if replacement is None:
        replacement = SENTINEL_REPLACEMENTS
    out = df.copy()
    for col in columns:
        if isinstance(replacement, dict):
            if col not in replacement:
                continue
            value = replacement[col]
        else:
            value = replacement
        mask = out[col] == sentinel
        n = int(mask.sum())
        if n:
            out[col] = out[col].mask(mask, value)
            logger.info("Replaced %d sentinel value(s) in '%s' with %s", n, col, value)
    return out


def load_trait_table(path, trait_columns=None, id_column=SPECIES_COL,
                     sentinel=MISSING_SENTINEL, replacement=None):
    """Load a Trait Table: one row per entity, numeric trait columns only."""
    df = read_table(path, required_columns=list(trait_columns or []), id_column=id_column)
    df = df.set_index(id_column)
    cols = list(trait_columns) if trait_columns else df.columns.tolist()
    if not cols:
        raise DataQualityError(f"{path}: no trait columns besides '{id_column}'")

    traits = df[cols].apply(pd.to_numeric, errors="coerce").astype(float)
    for col in cols:
        bad = traits[col].isna() & df[col].notna()
        if bad.any():
            raise DataQualityError(
                f"{path}: column '{col}' has non-numeric values for {bad[bad].index.tolist()}"
            )

    traits = replace_sentinels(traits, cols, sentinel=sentinel, replacement=replacement)
    for col in cols:
        if (traits[col] == sentinel).any():
            raise DataQualityError(f"{path}: column '{col}' has sentinel values with no replacement")
        if traits[col].isna().any():
            raise DataQualityError(f"{path}: column '{col}' has missing values")
    return traits.astype(float)


def load_germination_traits(path):
    """Trait Table restricted to the four hydrothermal-time model parameters."""
    return load_trait_table(path, trait_columns=TRAIT_COLS)


def load_field_trial(path):
    """Load the field-trial table and check the binary outcome column."""
    df = read_table(path, required_columns=FIELD_TRIAL_COLS, id_column="plant_id")
    for col in ["population", "treatment", "block"]:
        df[col] = df[col].astype(str)
    for col in ["height_cm", "biomass_g"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
        if df[col].isna().any():
            raise DataQualityError(f"{path}: column '{col}' has missing or non-numeric values")
    if not df["flowered"].isin([0, 1]).all():
        raise DataQualityError(f"{path}: column 'flowered' must contain only 0/1")
    df["flowered"] = df["flowered"].astype(int)
    return df


def load_routes(path):
    """Load introduction routes with coordinates for both endpoints."""
    df = read_table(path, required_columns=ROUTE_COLS)
    for col in ["origin_lat", "origin_lon", "dest_lat", "dest_lon", "year"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
        if df[col].isna().any():
            raise DataQualityError(f"{path}: column '{col}' has missing or non-numeric values")
    df["year"] = df["year"].astype(int)
    return df


@st.cache_data
def cached_trait_table(path):
    return load_trait_table(path)


@st.cache_data
def cached_germination_traits(path):
    return load_germination_traits(path)


@st.cache_data
def cached_field_trial(path):
    return load_field_trial(path)


@st.cache_data
def cached_routes(path):
    return load_routes(path)


def sidebar_path(label, default, key):
    """Render a sidebar text input for a CSV path; return the path."""
    st.sidebar.header("Data")
    return st.sidebar.text_input(label, value=default, key=key)


def load_or_stop(loader, path):
    """Run a loader; on a data-quality failure show the error and halt the page."""
    try:
        return loader(path)
    except DataQualityError as e:
        st.error(f"**Could not load data:** {e}")
        st.caption("Run `python make_sample_data.py` to write the bundled example files.")
        st.stop()
