"""Collaborative movie recommendations from a seed set of liked films."""
