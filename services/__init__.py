"""Clients for the chain node and price feed, and wallet-side operations."""
