"""spendscope command line interface."""
