"""Connectivity snapshot fed to the offline sync triggers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ConnectivityStatus(BaseModel):
    """Network state as reported by the host platform.

    `is_internet_reachable` is None while reachability is still unknown;
    unknown counts as offline.
    """

    model_config = ConfigDict(frozen=True)

    is_connected: bool = False
    is_internet_reachable: bool | None = None
    type: str | None = None

    @property
    def is_online(self) -> bool:
        return bool(self.is_connected and self.is_internet_reachable)

    @classmethod
    def online(cls, type: str | None = "wifi") -> ConnectivityStatus:
        return cls(is_connected=True, is_internet_reachable=True, type=type)

    @classmethod
    def offline(cls) -> ConnectivityStatus:
        return cls(is_connected=False, is_internet_reachable=False, type="none")
