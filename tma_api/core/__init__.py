# tma_api/core/__init__.py
"""
Доменный слой: аутентификация, пользователи, рефералы, кошельки.
"""
