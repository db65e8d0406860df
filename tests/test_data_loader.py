import pandas as pd
import pytest

from utils.data_loader import (
    DataQualityError, load_field_trial, load_germination_traits, load_routes, load_trait_table,
    read_table, replace_sentinels,
)


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


TRAITS_CSV = """species,base_temp_c,theta_ht,psi_b50,sigma_psib
Bromus tectorum,4.1,55.0,-1.4,0.30
Poa secunda,2.0,-999,-999,0.21
Elymus elymoides,6.5,80.2,-1.1,0.18
"""


def test_load_trait_table_replaces_sentinels(tmp_path):
    path = _write(tmp_path, "traits.csv", TRAITS_CSV)
    traits = load_trait_table(path)

    assert traits.index.name == "species"
    assert list(traits.columns) == ["base_temp_c", "theta_ht", "psi_b50", "sigma_psib"]
    assert traits.loc["Poa secunda", "theta_ht"] == 10000.0
    assert traits.loc["Poa secunda", "psi_b50"] == 0.0
    assert traits.loc["Bromus tectorum", "theta_ht"] == 55.0
    assert (traits != -999).all().all()


def test_load_trait_table_custom_replacement(tmp_path):
    path = _write(tmp_path, "traits.csv", TRAITS_CSV)
    traits = load_trait_table(path, replacement=5000.0)
    assert traits.loc["Poa secunda", "theta_ht"] == 5000.0
    assert traits.loc["Poa secunda", "psi_b50"] == 5000.0


def test_load_trait_table_unmapped_sentinel_fails(tmp_path):
    path = _write(tmp_path, "traits.csv", "species,x,y\na,1,-999\nb,2,3\n")
    with pytest.raises(DataQualityError, match="'y'"):
        load_trait_table(path)


def test_load_trait_table_duplicate_species(tmp_path):
    path = _write(tmp_path, "traits.csv", "species,x\na,1\na,2\nb,3\n")
    with pytest.raises(DataQualityError, match="duplicate"):
        load_trait_table(path)


def test_load_trait_table_non_numeric_names_column(tmp_path):
    path = _write(tmp_path, "traits.csv", "species,x,y\na,1,2\nb,oops,3\n")
    with pytest.raises(DataQualityError, match="'x'"):
        load_trait_table(path)


def test_load_trait_table_missing_value(tmp_path):
    path = _write(tmp_path, "traits.csv", "species,x,y\na,1,2\nb,,3\n")
    with pytest.raises(DataQualityError, match="'x'"):
        load_trait_table(path)


def test_load_trait_table_selected_columns(tmp_path):
    path = _write(tmp_path, "traits.csv", TRAITS_CSV)
    traits = load_trait_table(path, trait_columns=["base_temp_c", "sigma_psib"])
    assert list(traits.columns) == ["base_temp_c", "sigma_psib"]


def test_read_table_missing_file_names_path(tmp_path):
    path = str(tmp_path / "nope.csv")
    with pytest.raises(DataQualityError, match="nope.csv"):
        read_table(path)


def test_read_table_missing_column(tmp_path):
    path = _write(tmp_path, "t.csv", "a,b\n1,2\n")
    with pytest.raises(DataQualityError, match="'c'"):
        read_table(path, required_columns=["a", "c"])


def test_read_table_empty_file(tmp_path):
    path = _write(tmp_path, "t.csv", "")
    with pytest.raises(DataQualityError, match="t.csv"):
        read_table(path)


def test_replace_sentinels_only_touches_given_columns():
    df = pd.DataFrame({"a": [1, -999], "b": [-999, 2]})
    out = replace_sentinels(df, ["a"], replacement=0)
    assert out["a"].tolist() == [1, 0]
    assert out["b"].tolist() == [-999, 2]
    assert df["a"].tolist() == [1, -999]


def test_replace_sentinels_mapping_skips_unlisted_columns():
    df = pd.DataFrame({"a": [-999.0], "b": [-999.0]})
    out = replace_sentinels(df, ["a", "b"], replacement={"a": 7.0})
    assert out.loc[0, "a"] == 7.0
    assert out.loc[0, "b"] == -999.0


FIELD_CSV = """plant_id,population,treatment,block,height_cm,biomass_g,flowered
P1,Coastal,control,B1,40.2,4.1,1
P2,Coastal,drought,B1,31.0,3.2,0
P3,Inland,control,B2,44.9,5.0,1
"""


def test_load_field_trial(tmp_path):
    path = _write(tmp_path, "trial.csv", FIELD_CSV)
    trial = load_field_trial(path)
    assert len(trial) == 3
    assert trial["block"].tolist() == ["B1", "B1", "B2"]
    assert trial["flowered"].tolist() == [1, 0, 1]


def test_load_field_trial_rejects_non_binary_outcome(tmp_path):
    path = _write(tmp_path, "trial.csv", FIELD_CSV.replace("44.9,5.0,1", "44.9,5.0,2"))
    with pytest.raises(DataQualityError, match="flowered"):
        load_field_trial(path)


def test_load_routes_checks_numeric_coordinates(tmp_path):
    text = (
        "species,origin,origin_lat,origin_lon,destination,dest_lat,dest_lon,year\n"
        "Bromus tectorum,Central Asia,43,68,Great Basin,north,-117,1890\n"
    )
    path = _write(tmp_path, "routes.csv", text)
    with pytest.raises(DataQualityError, match="dest_lat"):
        load_routes(path)


def test_load_germination_traits_names_missing_model_columns(tmp_path):
    path = _write(tmp_path, "traits.csv", "species,base_temp_c,theta_ht\na,4.0,60.0\nb,2.0,90.0\n")
    with pytest.raises(DataQualityError, match=r"psi_b50.*sigma_psib"):
        load_germination_traits(path)


def test_load_germination_traits_drops_extra_columns(tmp_path):
    text = (
        "species,base_temp_c,theta_ht,psi_b50,sigma_psib,seed_mass_mg\n"
        "a,4.1,55.0,-1.4,0.30,1.5\n"
        "b,6.5,80.2,-1.1,0.18,2.0\n"
    )
    path = _write(tmp_path, "traits.csv", text)
    traits = load_germination_traits(path)
    assert list(traits.columns) == ["base_temp_c", "theta_ht", "psi_b50", "sigma_psib"]
