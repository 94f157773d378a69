# trainboard/core/feeds/base.py
"""
Abstract base for remote live feed providers.

Провайдер никогда не бросает исключения в ядро: сетевые ошибки
логируются, результат: ``None`` (фид отсутствует).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from trainboard.core.schedule.schemas import Event


class BaseFeedProvider(ABC):
    """Интерфейс провайдера живого табло станции."""

    name: str = "base"

    @abstractmethod
    async def fetch_departures(self, station_id: str) -> Optional[List[Event]]:
        """
        Live departures of one station.

        Args:
            station_id (str): station identifier (EVA number).

        Returns:
            Optional[List[Event]]: normalized remote events, or ``None``
            when the feed is unavailable.
        """

    async def ping(self) -> bool:
        """Лёгкая проверка доступности (для /healthz)."""
        return True


__all__ = ["BaseFeedProvider"]
