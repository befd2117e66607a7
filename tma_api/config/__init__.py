# tma_api/config/__init__.py
"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from tma_api.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
