"""
spendscope - statement ingestion and spend categorization.

Turns bank and credit-card statement files (spreadsheet exports and PDF
statements) into normalized transactions and assigns each one a spending
category using priority/score based rules and learned merchant history.
"""

__version__ = "0.1.0"
