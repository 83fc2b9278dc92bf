"""Request models and shared helpers."""
