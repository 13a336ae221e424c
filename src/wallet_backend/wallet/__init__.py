"""Wallet identity, file container and lifecycle."""
