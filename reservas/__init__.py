"""Reservation chat agent for Restaurante Park."""

__version__ = "0.1.0"
