"""
spendscope services.

Categorization of parsed statements: merchant extraction, rule scoring,
historical merchant hints and the per-statement import pipeline.
"""
