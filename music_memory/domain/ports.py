"""Ports (interfaces) for the hexagonal architecture."""

from abc import ABC, abstractmethod
from typing import Optional

from music_memory.domain.model import ContentType, ItemReference, SourceDescriptor


class LibraryProviderPort(ABC):
    @abstractmethod
    def candidates(self, source: SourceDescriptor, content_type: ContentType) -> list[ItemReference]:
        ...

    @abstractmethod
    def resolve(self, content_type: ContentType, item_ids: list[str]) -> dict[str, ItemReference]:
        ...

    @abstractmethod
    def artwork_snapshot(self, artwork_ref: Optional[str]) -> Optional[bytes]:
        ...


class SessionRepositoryPort(ABC):
    """Durable medium holding the encoded session list under a single key."""

    @abstractmethod
    def read_all(self) -> list[dict]:
        ...

    @abstractmethod
    def write_all(self, records: list[dict]) -> None:
        ...


class ConfigPort(ABC):
    @abstractmethod
    def load(self) -> dict:
        ...

    @abstractmethod
    def save(self, cfg: dict) -> None:
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        ...
