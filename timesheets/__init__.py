"""Core (UI-agnostic) timesheet analytics logic.

This package contains:
- schema mapping and row normalization (CSV -> pandas)
- distinct-value indexing and period defaults for the filter panel
- the filter engine every chart reads from
- filter persistence, overtime and overview metrics
- chart helpers (Altair -> Vega-Lite spec dict)
"""
