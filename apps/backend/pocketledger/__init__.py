"""PocketLedger personal-finance backend."""
