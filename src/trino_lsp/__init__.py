"""Language server for Trino SQL with minimal-edit formatting."""

__version__ = "0.1.0"
