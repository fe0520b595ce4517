"""Expense Record Service: a REST API for storing expense records."""

__all__ = [
    "config",
    "crud",
    "database",
    "logging",
    "models",
    "schemas",
    "server",
    "validation",
]

__version__ = "1.0.0"
