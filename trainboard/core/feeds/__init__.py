"""
Remote feed subsystem.

• ``BaseFeedProvider`` – абстрактный интерфейс провайдера живого табло.
• ``get_feed_provider()`` – фабрика, возвращающая инстанс нужного
  провайдера по имени или из ``settings.FEED_PROVIDER``.

Ленивая загрузка (``importlib.import_module``) не тянет httpx-провайдер,
пока он реально не выбран.
"""
from __future__ import annotations

import importlib
from typing import Dict, Tuple, Type

from trainboard.config import settings
from .base import BaseFeedProvider

# name → (module suffix, class name)
_PROVIDERS: Dict[str, Tuple[str, str]] = {
    "noop": (".noop", "NoOpFeedProvider"),
    "http": (".http", "HttpFeedProvider"),
}


def _lazy_import(module_suffix: str, class_name: str) -> Type[BaseFeedProvider]:
    """
    _lazy_import(".noop", "NoOpFeedProvider")  →  <class NoOpFeedProvider>
    Относительный путь (``.noop``) ищется внутри текущего пакета.
    """
    module = importlib.import_module(module_suffix, package=__name__)
    return getattr(module, class_name)


def get_feed_provider(name: str | None = None) -> BaseFeedProvider:
    """
    Вернуть экземпляр провайдера фида.

    • ``name`` – явное имя (case-insensitive).
    • Если не передано, берём из ``settings.FEED_PROVIDER``.
    """
    provider_key = (name or settings.FEED_PROVIDER).lower()
    try:
        module_suffix, class_name = _PROVIDERS[provider_key]
    except KeyError as exc:
        raise ValueError(f"Unknown feed provider: {provider_key}") from exc
    return _lazy_import(module_suffix, class_name)()


__all__: list[str] = ["BaseFeedProvider", "get_feed_provider"]
