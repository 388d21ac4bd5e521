"""Central feature/event logging."""
