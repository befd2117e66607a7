# tma_api/services/__init__.py
"""
HTTP-сервисы приложения (FastAPI).
"""

__all__: list[str] = []
