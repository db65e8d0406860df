import logging
import warnings

import numpy as np
import pandas as pd
import pytest
from statsmodels.genmod.bayes_mixed_glm import BinomialBayesMixedGLM
from statsmodels.regression.mixed_linear_model import MixedLM
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from utils.data_loader import DataQualityError
from utils.stats_helpers import (
    descriptive_stats, logistic_mixed_model, mixed_model_anova, perform_anova,
    predicted_probability, two_way_anova,
)


def _trial(seed=3):
    rng = np.random.default_rng(seed)
    effects = {"control": 0.0, "drought": -10.0, "nitrogen": 8.0, "shade": -3.0}
    block_shift = rng.normal(0, 4.0, 6)
    block_logit = rng.normal(0, 0.5, 6)
    rows = []
    for b in range(6):
        for trt, eff in effects.items():
            for pop in ["Coastal", "Inland"]:
                for _ in range(6):
                    height = 45.0 + eff + block_shift[b] + rng.normal(0, 4.0)
                    eta = -6.0 + 0.14 * height + block_logit[b]
                    rows.append({
                        "treatment": trt,
                        "population": pop,
                        "block": f"B{b + 1}",
                        "height_cm": height,
                        "flowered": int(rng.random() < 1 / (1 + np.exp(-eta))),
                    })
    return pd.DataFrame(rows)


def test_mixed_model_anova_detects_treatment_effect():
    result = mixed_model_anova(_trial(), "height_cm", ["treatment"], random="block")

    wald = result["wald"].set_index("term")
    assert list(wald.index) == ["C(treatment)"]
    assert wald.loc["C(treatment)", "df"] == 3
    assert wald.loc["C(treatment)", "p_value"] < 1e-6

    fe = result["fixed_effects"]
    assert "Intercept" in fe.index
    assert fe.loc["C(treatment)[T.drought]", "coef"] < 0
    assert 0.0 <= result["icc"] <= 1.0
    assert result["var_residual"] > 0
    assert result["n_groups"] == 6
    assert isinstance(result["warnings"], list)


def test_mixed_model_anova_crossed_factors_have_interaction_term():
    result = mixed_model_anova(_trial(), "height_cm", ["treatment", "population"], random="block")
    terms = result["wald"]["term"].tolist()
    assert terms == ["C(treatment)", "C(population)", "C(treatment):C(population)"]
    assert result["formula"] == "height_cm ~ C(treatment) * C(population)"


def test_two_way_anova_table():
    table = two_way_anova(_trial(), "height_cm", "treatment", "population")
    assert "C(treatment)" in table.index
    assert "C(treatment):C(population)" in table.index
    assert "Residual" in table.index
    assert "p_value" in table.columns
    assert table.loc["C(treatment)", "p_value"] < 1e-6


def test_logistic_mixed_model_height_effect_positive():
    result = logistic_mixed_model(_trial(), "flowered", ["C(treatment)", "height_cm"], random="block")

    post = result["posterior"]
    assert "height_cm" in post.index
    assert post.loc["height_cm", "post_mean"] > 0
    assert (post["post_sd"] > 0).all()
    assert (post["ci_lower"] < post["ci_upper"]).all()
    assert post.loc["height_cm", "odds_ratio"] == pytest.approx(np.exp(post.loc["height_cm", "post_mean"]))

    assert result["glm"].loc["height_cm", "coef"] > 0
    assert result["random_sd"] > 0
    assert isinstance(result["warnings"], list)


def test_logistic_mixed_model_rejects_non_binary_outcome():
    trial = _trial()
    trial.loc[0, "flowered"] = 2
    with pytest.raises(DataQualityError, match="flowered"):
        logistic_mixed_model(trial, "flowered", ["C(treatment)"], random="block")


def test_predicted_probability_inverse_logit():
    coefs = pd.Series([0.0, 1.0], index=["Intercept", "x"])
    design = pd.DataFrame({"Intercept": [1.0, 1.0], "x": [0.0, np.log(3.0)]})
    probs = predicted_probability(coefs, design)
    assert probs[0] == pytest.approx(0.5)
    assert probs[1] == pytest.approx(0.75)


def test_perform_anova_and_descriptive_stats():
    a = pd.Series([1.0, 2.0, 3.0])
    b = pd.Series([10.0, 11.0, 12.0])
    result = perform_anova(a, b)
    assert result["p_value"] < 0.001
    stats = descriptive_stats(a)
    assert stats["mean"] == pytest.approx(2.0)
    assert stats["count"] == 3


NOT_CONVERGED = "ConvergenceWarning: optimization failed to converge"


def _warning_records(caplog):
    return [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]


def test_mixed_model_anova_reports_convergence_warning(monkeypatch, caplog):
    original_fit = MixedLM.fit

    def fit_with_warning(self, *args, **kwargs):
        # emitted twice, reported once
        warnings.warn("optimization failed to converge", ConvergenceWarning)
        warnings.warn("optimization failed to converge", ConvergenceWarning)
        return original_fit(self, *args, **kwargs)

    monkeypatch.setattr(MixedLM, "fit", fit_with_warning)
    with caplog.at_level(logging.WARNING, logger="utils.stats_helpers"):
        result = mixed_model_anova(_trial(), "height_cm", ["treatment"], random="block")

    assert result["warnings"].count(NOT_CONVERGED) == 1
    assert NOT_CONVERGED in _warning_records(caplog)
    assert result["wald"].loc[0, "term"] == "C(treatment)"


def test_logistic_mixed_model_reports_convergence_warning(monkeypatch, caplog):
    original_fit_vb = BinomialBayesMixedGLM.fit_vb

    def fit_vb_with_warning(self, *args, **kwargs):
        warnings.warn("optimization failed to converge", ConvergenceWarning)
        return original_fit_vb(self, *args, **kwargs)

    monkeypatch.setattr(BinomialBayesMixedGLM, "fit_vb", fit_vb_with_warning)
    with caplog.at_level(logging.WARNING, logger="utils.stats_helpers"):
        result = logistic_mixed_model(_trial(), "flowered", ["height_cm"], random="block")

    assert NOT_CONVERGED in result["warnings"]
    assert NOT_CONVERGED in _warning_records(caplog)
    assert "height_cm" in result["posterior"].index
