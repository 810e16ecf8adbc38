"""Telegram command interface."""
