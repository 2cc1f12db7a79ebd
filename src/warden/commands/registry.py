"""Static list of the chat commands shipped with Warden."""

from warden.commands import ban, clearreports, help, report, unban, viewreports
from warden.datatypes.command_datatypes import CommandModules

COMMAND_MODULES: CommandModules = (ban, unban, report, viewreports, clearreports, help)
