"""Utility helpers for argsinto."""
