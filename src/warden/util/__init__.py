"""
Utility functions and helpers for Warden.

- **logger.py**: Logging with colored prompt_toolkit console output and
  per-session rotating log files.
- **format_utils.py**: Message template substitution and display helpers.
- **player_utils.py**: Duration parsing, player lookup and reply helpers.
"""
