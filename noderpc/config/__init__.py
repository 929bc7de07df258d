from .settings import ClientSettings, OverflowPolicy, get_settings

__all__ = ["ClientSettings", "OverflowPolicy", "get_settings"]
