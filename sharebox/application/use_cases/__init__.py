"""Use cases: one service per HTTP operation."""
