"""Frame, channel, and notification type names shared across the backend."""
