"""
Database models and SQLite helpers.

Session factories are built on demand by `moneymarket.database.operations`, so importing the
models does not touch the configured database.
"""
