"""Personal trading journal: trade storage, normalization and performance statistics."""
