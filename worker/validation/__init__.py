"""Cross-signal validation and reconciliation of scan results."""
