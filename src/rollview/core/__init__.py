"""Hierarchical rollup table engine.

Indexing, hierarchy-preserving sort, flattening, expand/collapse and
session-persisted view state for company/brand/address/channel rows.
"""
