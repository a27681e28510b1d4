"""Endpoint lifecycle and dispatch engine."""
