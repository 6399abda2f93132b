"""
Signage Cache - Renderer Contract
What the playback collaborator must provide to render cached content
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Protocol, runtime_checkable

from .exceptions import ValidationError
from .schemas.playlist import MediaItem, MediaType


class RendererState(str, Enum):
    IDLE = "IDLE"
    PREPARING = "PREPARING"
    PLAYING = "PLAYING"
    ENDED = "ENDED"
    ERROR = "ERROR"


@runtime_checkable
class MediaRenderer(Protocol):
    """
    Capability interface implemented by the host's native engine, one per
    family of media types (video, image, web...).
    """

    supported_types: FrozenSet[MediaType]

    def prepare(self, item: MediaItem, source: str) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def state(self) -> RendererState: ...

    def error_reason(self) -> Optional[str]: ...


class RendererRegistry:
    """Maps each media type to exactly one renderer"""

    def __init__(self, renderers: Iterable[MediaRenderer] = ()):
        self._by_type: Dict[MediaType, MediaRenderer] = {}
        for renderer in renderers:
            self.register(renderer)

    def register(self, renderer: MediaRenderer) -> None:
        if not isinstance(renderer, MediaRenderer):
            raise TypeError(f"{type(renderer).__name__} does not implement MediaRenderer")
        for media_type in renderer.supported_types:
            current = self._by_type.get(media_type)
            if current is not None and current is not renderer:
                raise ValueError(f"{media_type.value} already handled by {type(current).__name__}")
            self._by_type[media_type] = renderer

    @property
    def supported_types(self) -> FrozenSet[MediaType]:
        return frozenset(self._by_type)

    def renderer_for(self, item: MediaItem) -> MediaRenderer:
        renderer = self._by_type.get(item.type)
        if renderer is None:
            raise ValidationError(f"No renderer registered for {item.type.value}")
        return renderer
