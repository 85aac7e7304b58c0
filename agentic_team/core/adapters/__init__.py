"""Vendor adapters for converting UMP conversations to provider payloads."""

from .legacy import message_from_openai_chat, messages_to_openai_chat  # noqa: F401  # pyright: ignore[reportUnusedImport]
