"""Utility helpers for the admin console."""
