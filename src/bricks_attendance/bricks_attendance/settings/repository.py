from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Setting


class SettingsRepository(Protocol):
    def list_all(self) -> Sequence[Setting]:
        raise NotImplementedError

    def get(self, key: str) -> Optional[Setting]:
        raise NotImplementedError

    def update_value(self, key: str, value: str) -> bool:
        raise NotImplementedError
