"""Shared dataclasses, enums and protocols."""
