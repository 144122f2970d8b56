"""Unix-socket IPC protocol, JSON state dumps and event server for a tiling window manager."""

__version__ = "6.5.0"
__all__ = ["config", "dumps", "events", "models", "protocol", "server", "util"]