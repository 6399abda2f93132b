import unittest
from typing import Optional

from signage_cache.exceptions import ValidationError
from signage_cache.renderer import MediaRenderer, RendererRegistry, RendererState
from signage_cache.schemas import MediaType

from tests.support import make_item


class FakeRenderer:
    """Records calls instead of drawing anything"""

    def __init__(self, *types: MediaType):
        self.supported_types = frozenset(types)
        self.prepared = None
        self._state = RendererState.IDLE

    def prepare(self, item, source: str) -> None:
        self.prepared = (item.id, source)
        self._state = RendererState.PREPARING

    def play(self) -> None:
        self._state = RendererState.PLAYING

    def pause(self) -> None:
        pass

    def stop(self) -> None:
        self._state = RendererState.IDLE

    def state(self) -> RendererState:
        return self._state

    def error_reason(self) -> Optional[str]:
        return None


class RendererRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.video = FakeRenderer(MediaType.VIDEO, MediaType.STREAM_HLS)
        self.image = FakeRenderer(MediaType.IMAGE)
        self.registry = RendererRegistry([self.video, self.image])

    def test_fake_satisfies_protocol(self) -> None:
        self.assertIsInstance(self.video, MediaRenderer)

    def test_dispatch_by_type(self) -> None:
        self.assertIs(self.video, self.registry.renderer_for(make_item("a", type="STREAM_HLS")))
        self.assertIs(self.image, self.registry.renderer_for(make_item("b", type="IMAGE")))
        self.assertEqual(
            {MediaType.VIDEO, MediaType.STREAM_HLS, MediaType.IMAGE}, set(self.registry.supported_types)
        )

    def test_unsupported_type(self) -> None:
        with self.assertRaises(ValidationError):
            self.registry.renderer_for(make_item("w", type="WEB_WIDGET"))

    def test_one_renderer_per_type(self) -> None:
        with self.assertRaises(ValueError):
            self.registry.register(FakeRenderer(MediaType.IMAGE))
        # Re-registering the same renderer is harmless
        self.registry.register(self.image)

    def test_rejects_non_renderer(self) -> None:
        with self.assertRaises(TypeError):
            self.registry.register(object())

    def test_renderer_lifecycle(self) -> None:
        item = make_item("a", type="VIDEO")
        renderer = self.registry.renderer_for(item)

        renderer.prepare(item, "/media/a.mp4")
        renderer.play()

        self.assertEqual(("a", "/media/a.mp4"), renderer.prepared)
        self.assertEqual(RendererState.PLAYING, renderer.state())


if __name__ == "__main__":
    unittest.main()
