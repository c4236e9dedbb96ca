"""Design AI portfolio backend."""
