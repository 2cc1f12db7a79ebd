"""YAML configuration access and the validated action-profile schema."""
