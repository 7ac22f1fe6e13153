"""Task-board notification service."""
