"""GPTWorkDesk document ingestion and context-injection service."""

__version__ = "0.1.0"
