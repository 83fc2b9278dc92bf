"""Usage accounting and per-run pipeline logs."""
