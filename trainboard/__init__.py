# trainboard/__init__.py
"""
Train board backend: проекция расписания, окна занятости, конфликты,
объявления и координация live-sync между редактором и push-сигналами.
"""
__version__ = "0.3.0"
