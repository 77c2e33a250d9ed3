"""Data models for connection parameters."""

from .connection import Connection, DEFAULT_INTERFACE, DEFAULT_TOOL
