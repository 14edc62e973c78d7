"""Testing – in-memory doubles for the storage boundary."""
