"""Completion notifications."""
