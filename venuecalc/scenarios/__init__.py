"""Scenarios: the persisted unit of inputs + derived metrics.

- model.py: Scenario / WeekContext records and construction/update helpers
- migrations.py: versioned schema steps applied to stored records
- storage.py: JSON file store, export/import
"""
