"""Core: configuration, request hooks, exception handlers and lifespan wiring."""
