"""Background task that periodically persists dirty moderation state."""
