"""Injected signal collectors."""
