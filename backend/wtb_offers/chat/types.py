"""
Discord API constants and exceptions.

WHAT: Interaction/component type codes and client error types
WHY: Keep raw Discord numbers out of handler code
HOW: Plain int constants (as documented by the Discord API) and exception classes
"""

# Interaction types
INTERACTION_PING = 1
INTERACTION_MESSAGE_COMPONENT = 3
INTERACTION_MODAL_SUBMIT = 5

# Interaction callback types
RESPONSE_PONG = 1
RESPONSE_CHANNEL_MESSAGE = 4
RESPONSE_DEFERRED_CHANNEL_MESSAGE = 5
RESPONSE_MODAL = 9

# Message flags
FLAG_EPHEMERAL = 1 << 6

# Component types
COMPONENT_ACTION_ROW = 1
COMPONENT_BUTTON = 2
COMPONENT_TEXT_INPUT = 4

# Button styles
BUTTON_PRIMARY = 1
BUTTON_SUCCESS = 3

# Text input styles
TEXT_INPUT_SHORT = 1

# Channel types
CHANNEL_GUILD_TEXT = 0
CHANNEL_GUILD_CATEGORY = 4

# Permission overwrite target types
OVERWRITE_ROLE = 0
OVERWRITE_MEMBER = 1

# Permission bits
PERMISSION_VIEW_CHANNEL = 1 << 10
PERMISSION_SEND_MESSAGES = 1 << 11
PERMISSION_READ_MESSAGE_HISTORY = 1 << 16


class DiscordError(Exception):
    """Base class for Discord API failures."""
    pass


class DiscordUnavailableError(DiscordError):
    """Discord is not reachable, timed out, or is rate limiting us."""
    pass


class DiscordResponseError(DiscordError):
    """Discord rejected a request or returned an unreadable payload."""
    pass
