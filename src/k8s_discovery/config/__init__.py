from .settings import Settings, LogLevel

__all__ = ["Settings", "LogLevel"]
