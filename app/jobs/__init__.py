"""Periodic recovery jobs."""
