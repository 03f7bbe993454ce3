"""Valuation engine for Stellar portfolios and multi-account funds."""

__version__ = "0.1.0"
