"""Runnable examples for the indoor_pdr package."""
