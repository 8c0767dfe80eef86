"""Rollview - hierarchical rollup tables for delivery-platform metrics."""

__version__ = "0.1.0"
