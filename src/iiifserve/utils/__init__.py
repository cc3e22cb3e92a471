"""Utility helpers for iiifserve."""
