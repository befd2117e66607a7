# tma_api/__init__.py
"""
TMA Auth API — backend для Telegram Mini App.

Аутентификация по Telegram initData, реферальная атрибуция
и привязка TON-кошелька к пользователю.
"""

__version__ = "1.0.0"
