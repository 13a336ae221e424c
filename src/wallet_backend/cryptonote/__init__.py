"""CryptoNote key and address primitives."""
