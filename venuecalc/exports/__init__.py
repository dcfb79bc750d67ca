"""Exports & reporting: text reports and CSV writers.

- reports.py: scenario summary and detailed weekly report (plain text)
- writers.py: CSV emitters for the weekly table and the metrics record
"""
