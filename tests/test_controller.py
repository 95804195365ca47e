"""
VideoMind - Interaction Controller Tests
=========================================
"""

import json

import pytest

from conftest import make_document_dict
from videomind.schemas.mindmap import deserialize, serialize
from videomind.services.controller import InteractionController, download_filename
from videomind.services.lifecycle import DocumentLifecycleManager


@pytest.fixture
def wiring(fake_media):
    """Lifecycle + controller with recording sinks."""
    lifecycle = DocumentLifecycleManager(fake_media.release, tier="small")
    seeks, saves, highlights = [], [], []
    controller = InteractionController(lifecycle, seek=seeks.append, save_file=saves.append)
    controller.add_highlight_listener(highlights.append)
    lifecycle.upload(make_document_dict())
    highlights.clear()
    return lifecycle, controller, seeks, saves, highlights


class TestTimeUpdates:
    """Highlight changes only when the resolved node changes."""

    def test_notifies_on_change_only(self, wiring):
        _, controller, _, _, highlights = wiring

        controller.on_time_update(1)     # 0 -> 0: already active after upload at t=0
        controller.on_time_update(10)
        controller.on_time_update(29.9)
        controller.on_time_update(30)
        controller.on_time_update(45)
        controller.on_time_update(95)
        controller.on_time_update(96)

        assert highlights == [1, None]
        assert controller.active_index is None
        assert controller.current_time == 96

    def test_returns_active_index(self, wiring):
        _, controller, _, _, _ = wiring
        assert controller.on_time_update(31) == 1
        assert controller.active_index == 1

    def test_seeking_backwards(self, wiring):
        _, controller, _, _, highlights = wiring
        controller.on_time_update(60)
        controller.on_time_update(5)
        assert highlights == [1, 0]


class TestNodeActivation:
    def test_seek_to_exact_start(self, wiring):
        lifecycle, controller, seeks, _, _ = wiring
        lifecycle.upload(make_document_dict(ranges=((0.125, 30), (30.333, 90))))

        assert controller.on_node_activate(1) == 30.333
        assert seeks == [30.333]

    def test_activation_does_not_change_highlight(self, wiring):
        _, controller, seeks, _, highlights = wiring
        controller.on_node_activate(1)

        assert seeks == [30]
        assert highlights == []
        assert controller.active_index == 0

    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_out_of_range(self, wiring, index):
        _, controller, seeks, _, _ = wiring
        with pytest.raises(IndexError):
            controller.on_node_activate(index)
        assert seeks == []


class TestDownload:
    def test_filename(self):
        assert download_filename("Intro & Outro") == "intro___outro_mindmap.json"
        assert download_filename("Big Buck Bunny!") == "big_buck_bunny__mindmap.json"
        assert download_filename("Café") == "caf__mindmap.json"

    def test_download_is_serialization_of_active_document(self, wiring):
        lifecycle, controller, _, saves, _ = wiring
        artifact = controller.on_download_requested()

        assert saves == [artifact]
        assert artifact.payload == serialize(lifecycle.document)
        assert deserialize(artifact.payload) == lifecycle.document
        assert artifact.filename == "intro___outro__it_covers_two_parts__mindmap.json"
        assert json.loads(artifact.payload)["nodes"][1]["timestamp"] == [30, 90]

    def test_download_without_sink(self, fake_media):
        lifecycle = DocumentLifecycleManager(fake_media.release, tier="small")
        controller = InteractionController(lifecycle, seek=lambda s: None)
        assert controller.on_download_requested().payload == serialize(lifecycle.document)


class TestDocumentSwap:
    """Swaps re-layout, re-resolve and notify, in that order."""

    def test_swap_recomputes_layout_and_highlight(self, wiring):
        lifecycle, controller, _, _, highlights = wiring
        controller.on_time_update(45)
        old_layout = controller.layout
        highlights.clear()

        lifecycle.upload(make_document_dict(ranges=((0, 40), (40, 50), (50, 60))))

        assert controller.active_index == 1
        assert highlights == [1]
        assert controller.layout is not old_layout
        assert len(controller.layout.vertices) == 3

    def test_layout_stable_across_time_updates(self, wiring):
        _, controller, _, _, _ = wiring
        layout = controller.layout
        for t in range(0, 120, 7):
            controller.on_time_update(t)
        assert controller.layout is layout

    def test_listener_sees_new_layout_and_index(self, wiring):
        lifecycle, controller, _, _, _ = wiring
        controller.on_time_update(45)
        seen = []
        controller.add_highlight_listener(
            lambda index: seen.append((index, len(controller.layout.vertices), len(lifecycle.document.nodes)))
        )

        lifecycle.reset()

        assert seen == [(controller.active_index, len(lifecycle.document.nodes), len(lifecycle.document.nodes))]

    def test_controller_never_mutates_document(self, wiring):
        lifecycle, controller, _, _, _ = wiring
        before = serialize(lifecycle.document)
        controller.on_time_update(50)
        controller.on_node_activate(0)
        controller.on_download_requested()
        assert serialize(lifecycle.document) == before
