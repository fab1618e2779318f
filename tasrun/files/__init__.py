"""On-disk formats — program files and run-length encoded recordings."""
