"""Churn pods and headless services and measure DNS convergence."""

__version__ = "0.1.0"
