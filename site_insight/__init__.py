"""
SiteInsight package initializer.
Defines package version; the CLI lives in :mod:`site_insight.cli`.
"""
__version__ = "0.1.0"
