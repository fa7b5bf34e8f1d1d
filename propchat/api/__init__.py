"""PropChat HTTP boundary."""
