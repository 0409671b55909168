"""Local persistence for view preferences."""
