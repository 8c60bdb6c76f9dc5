"""Pulse — cached multi-service health aggregation."""
