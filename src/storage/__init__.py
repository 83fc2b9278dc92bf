"""Article and run persistence."""
