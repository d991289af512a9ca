"""Ledger event classification, identity resolution and counter aggregation."""
