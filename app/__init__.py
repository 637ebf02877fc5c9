"""Observation portal cache coherence service."""
