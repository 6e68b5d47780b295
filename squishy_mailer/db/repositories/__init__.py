"""
Per-domain repository modules for database access.

Repository functions take a ``Session``, translate constraint violations into
``StoreError`` codes and never commit; ``squishy_mailer.db.store`` owns
session lifetimes and transaction boundaries.
"""
