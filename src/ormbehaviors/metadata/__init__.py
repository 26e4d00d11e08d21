"""Entity metadata loading and validation."""
