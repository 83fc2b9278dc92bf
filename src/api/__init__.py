"""Public wiring entry points."""
