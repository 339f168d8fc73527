"""Core custom exceptions for the application."""


class ChatRelayError(Exception):
    """Base exception for chat-relay errors."""


class ConfigurationError(ChatRelayError):
    """Exception for configuration-related errors (e.g., missing templates, invalid settings)."""


class SessionNotFoundError(ChatRelayError):
    """Raised when a turn is appended to a session id the store has never seen."""
