"""Reusable statistics computation helpers for the field-trial models."""
import logging
import warnings

import numpy as np
import pandas as pd
from scipy import stats
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.genmod.bayes_mixed_glm import BinomialBayesMixedGLM

from utils.data_loader import DataQualityError

logger = logging.getLogger(__name__)


def descriptive_stats(series):
    """Compute descriptive statistics for a numeric series."""
    return {
        "count": len(series),
        "mean": series.mean(),
        "median": series.median(),
        "std": series.std(),
        "min": series.min(),
        "max": series.max(),
    }


def perform_anova(*groups):
    """Perform one-way ANOVA."""
    stat, p = stats.f_oneway(*groups)
    return {"f_stat": stat, "p_value": p}


def _fit_quietly(fit_func):
    """Call ``fit_func`` and return (result, list of warning messages)."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = fit_func()
    messages = []
    for w in caught:
        msg = f"{w.category.__name__}: {w.message}"
        if msg not in messages:
            messages.append(msg)
            logger.warning(msg)
    return result, messages


def wald_table(fit):
    """Joint Wald chi-square test per fixed term, without the intercept."""
    table = fit.wald_test_terms(scalar=True).summary_frame()
    table = table.drop(index="Intercept", errors="ignore")
    table = table.rename(columns={"P>chi2": "p_value", "df constraint": "df"})
    table = table.rename_axis("term").reset_index()
    table["chi2"] = table["chi2"].astype(float)
    table["df"] = table["df"].astype(int)
    return table[["term", "chi2", "df", "p_value"]]


def mixed_model_anova(df, response, fixed, random):
    """Linear mixed model: fixed factor(s) plus a random intercept per group.

    ``fixed`` is a list of factor columns crossed with each other; ``random``
    names the grouping column (e.g. block). Fitted by REML.
    """
    if isinstance(fixed, str):
        fixed = [fixed]
    formula = f"{response} ~ " + " * ".join(f"C({f})" for f in fixed)
    model = smf.mixedlm(formula, df, groups=df[random])
    fit, messages = _fit_quietly(lambda: model.fit(reml=True))

    fe_names = model.exog_names
    fe = pd.Series(np.asarray(fit.fe_params), index=fe_names)
    se = pd.Series(np.asarray(fit.bse_fe), index=fe_names)
    z = fe / se
    fixed_effects = pd.DataFrame({
        "coef": fe,
        "se": se,
        "z": z,
        "p_value": 2 * stats.norm.sf(np.abs(z)),
    })

    var_random = float(np.asarray(fit.cov_re)[0, 0])
    var_residual = float(fit.scale)
    var_total = var_random + var_residual

    return {
        "formula": formula,
        "fixed_effects": fixed_effects,
        "wald": wald_table(fit),
        "var_random": var_random,
        "var_residual": var_residual,
        "icc": var_random / var_total if var_total > 0 else 0.0,
        "converged": bool(fit.converged),
        "warnings": messages,
        "n": len(df),
        "n_groups": int(df[random].nunique()),
    }


def two_way_anova(df, response, a, b):
    """Fixed-effects two-way ANOVA table with interaction (Type II)."""
    model = smf.ols(f"{response} ~ C({a}) + C({b}) + C({a}):C({b})", data=df).fit()
    table = sm.stats.anova_lm(model, typ=2)
    return table.rename(columns={"PR(>F)": "p_value"})


def _check_binary(df, outcome):
    if not df[outcome].dropna().isin([0, 1]).all():
        raise DataQualityError(f"column '{outcome}' must contain only 0/1 for logistic regression")


def logistic_mixed_model(df, outcome, fixed_terms, random):
    """Mixed-effects logistic regression with a random intercept per group.

    Fitted by variational Bayes (statsmodels BinomialBayesMixedGLM). The same
    fixed terms are also fitted as an ordinary logistic GLM for comparison.
    Estimation warnings, including non-convergence, are returned rather than
    raised.
    """
    _check_binary(df, outcome)
    formula = f"{outcome} ~ " + " + ".join(fixed_terms)

    model = BinomialBayesMixedGLM.from_formula(
        formula, {random: f"0 + C({random})"}, df,
    )
    fit, messages = _fit_quietly(model.fit_vb)

    fe_mean = pd.Series(fit.fe_mean, index=model.fep_names)
    fe_sd = pd.Series(fit.fe_sd, index=model.fep_names)
    posterior = pd.DataFrame({
        "post_mean": fe_mean,
        "post_sd": fe_sd,
        "ci_lower": fe_mean - 1.96 * fe_sd,
        "ci_upper": fe_mean + 1.96 * fe_sd,
        "odds_ratio": np.exp(fe_mean),
    })

    glm, glm_messages = _fit_quietly(
        lambda: smf.glm(formula, data=df, family=sm.families.Binomial()).fit()
    )
    fixed_only = pd.DataFrame({
        "coef": glm.params,
        "se": glm.bse,
        "p_value": glm.pvalues,
        "odds_ratio": np.exp(glm.params),
    })

    return {
        "formula": formula,
        "posterior": posterior,
        "random_sd": float(np.exp(fit.vcp_mean[0])),
        "glm": fixed_only,
        "warnings": messages + [m for m in glm_messages if m not in messages],
        "n": len(df),
        "n_groups": int(df[random].nunique()),
    }


def predicted_probability(coefs, design):
    """Inverse-logit of a linear predictor built from named coefficients."""
    eta = design[coefs.index].values @ coefs.values
    return 1.0 / (1.0 + np.exp(-eta))
