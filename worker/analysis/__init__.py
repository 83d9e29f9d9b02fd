"""Scan data model: collector outcomes, signal payloads and the analysis result."""
