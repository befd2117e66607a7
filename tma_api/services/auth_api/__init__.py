# tma_api/services/auth_api/__init__.py
"""
Auth API — HTTP-граница Telegram Mini App.

Проверка initData, upsert пользователя с реферальной атрибуцией,
список рефералов, привязка TON-кошелька.
"""
