"""LaunchPilot scan worker: RQ queue, scan pipeline and task reconciliation."""
