"""Adapters for the external collaborators of the limiter."""
