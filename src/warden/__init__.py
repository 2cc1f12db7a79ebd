"""
Warden - in-game moderation and anti-cheat action pipeline

Warden turns detection signals into graduated consequences and gives server
staff a permission-gated chat command surface.

Core Components:

- **Action Profile Engine**: Maps a violation to its configured flag, audit log
  and admin notification consequences
- **Command Dispatch Gateway**: Parses prefixed chat messages, resolves aliases,
  checks enablement and permission levels, and routes to command executors
- **Durable Record Cache**: In-memory reports, bans and audit log persisted as
  JSON blobs in a SQLite-backed key-value store
- **AutoMod**: Bans players automatically once a flag count reaches a threshold
- **Operator Console**: Live status, flushing and command execution

Usage:
    from warden.main import main
    main()  # Starts the runtime with the operator console
"""
