"""Ledger query and grouping engine.

The FastAPI application lives in :mod:`ledger_engine.main`; it is not imported
here so that models and services can be used without a configured database.
"""

__all__: list[str] = []
