"""Asyncio stdio transport for Model Context Protocol JSON-RPC messaging."""

__version__ = "0.1.0"
__all__ = ["errors", "transport", "dispatcher", "stdio"]