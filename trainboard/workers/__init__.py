# trainboard/workers/__init__.py
"""
Пакет для фоновых задач Celery.
Celery сам загрузит trainboard.workers.tasks по флагу «-A».
"""
__all__: list[str] = ["tasks"]
