"""
VideoMind - Pytest Configuration
=================================

Shared fixtures for all tests.
"""

import os

# No real provider keys during tests
os.environ["GROQ_API_KEY"] = ""
os.environ["GOOGLE_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from videomind.schemas.mindmap import MindMapDocument, validate_document
from videomind.services.session import VideoMindSession


def make_document_dict(ranges=((0, 30), (30, 90)), root_topic="Intro & Outro. It covers two parts!"):
    return {
        "root_topic": root_topic,
        "nodes": [
            {
                "topic": f"Topic {i}",
                "summary": [f"Point {i}.a", f"Point {i}.b"],
                "keywords": [f"kw{i}-{k}" for k in range(6)],
                "timestamp": list(r),
            }
            for i, r in enumerate(ranges)
        ],
    }


@pytest.fixture
def doc_dict() -> dict:
    return make_document_dict()


@pytest.fixture
def document(doc_dict) -> MindMapDocument:
    return validate_document(doc_dict)


class FakeMedia:
    """Records release() calls in order."""

    def __init__(self):
        self.released = []

    def release(self, handle: str) -> None:
        self.released.append(handle)


@pytest.fixture
def fake_media() -> FakeMedia:
    return FakeMedia()


@pytest.fixture
def session(tmp_path):
    session = VideoMindSession(media_root=tmp_path / "media", tier="medium")
    yield session
    session.close()


@pytest.fixture
def client(session):
    from videomind.main import app

    previous = app.state.session
    app.state.session = session
    try:
        yield TestClient(app)
    finally:
        app.state.session = previous
