"""
Chat commands and the dispatch gateway.

- **command_manager.py**: Lookup tables, alias resolution, enablement and
  permission checks, error isolation, automated invocation.
- **registry.py**: Static list of the shipped command modules.
- One module per command (``ban``, ``unban``, ``report``, ``viewreports``,
  ``clearreports``, ``help``), each exposing ``definition`` and ``execute``.
"""
