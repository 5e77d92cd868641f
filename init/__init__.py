from .bot_init import NotifierBot
from .settings_init import load_settings

__all__ = ["NotifierBot", "load_settings"]
