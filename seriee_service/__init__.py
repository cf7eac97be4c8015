"""Companion service for the Seriee TV tracking app."""
