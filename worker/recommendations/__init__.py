"""Recommendation keys, task categories and the treatment plan."""
