"""
spendscope parsers - statement file readers.

Turns raw statement bytes into ParsedStatement records. Only the bank
parsers live here; categorization is in spendscope.services.
"""
