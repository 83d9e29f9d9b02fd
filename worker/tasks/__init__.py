"""Background jobs: scan orchestration and task synchronization."""
