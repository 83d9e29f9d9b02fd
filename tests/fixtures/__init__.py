"""Builders and fakes shared by the unit tests."""
