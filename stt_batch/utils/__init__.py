"""Shared helpers for logging and audio input handling."""
