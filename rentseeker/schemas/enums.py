# rentseeker/schemas/enums.py
from enum import Enum


class EventKind(str, Enum):
    """Kinds of inbound events the dialogue understands"""
    COMMAND = "command"      # "/search", "/help", ...
    SELECTION = "selection"  # Inline keyboard callback data
    TEXT = "text"            # Free-text reply


class Command(str, Enum):
    """Bot commands, matching the names registered with BotFather"""
    START = "start"
    HELP = "help"
    SEARCH = "search"
    SAVE_PREFERENCES = "save_preferences"
    VIEW_PREFERENCES = "view_preferences"
    CLEAR_PREFERENCES = "clear_preferences"
    SAVED = "saved"
