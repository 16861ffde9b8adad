"""
Bayesian pooled-vs-mixture model selection for small Gaussian samples.

Estimates the evidence of a one-component ("pooled") and a two-component
("differ") Gaussian model by grid quadrature over prior quantiles and by
Monte Carlo draws from the prior, and validates model selection on
synthetic data generated under each model.
"""
