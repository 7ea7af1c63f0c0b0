"""Application layer: file use cases and the pure policies they share."""
