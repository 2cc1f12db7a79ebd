"""
Moderation logic.

- **action_manager.py**: Applies check action profiles to violations.
- **player_data_manager.py**: Flag counters and watch status per player.
- **admin_notifier.py**: Broadcast to connected admins.
- **rank_manager.py**: Permission level resolution.
- **automod.py**: Threshold rules run through the command gateway.
"""
