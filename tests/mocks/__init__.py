from tests.mocks.llm import (
    FakeCompletionStream,
    MockCompletionStreamer,
    MockEmbeddingClient,
    sse_frames,
)
from tests.mocks.messaging import MockConversationService, MockMessageService
from tests.mocks.server import MockServiceContainer
from tests.mocks.storage import MockDocumentStore, MockPool, make_document

__all__ = [
    "FakeCompletionStream",
    "MockCompletionStreamer",
    "MockConversationService",
    "MockDocumentStore",
    "MockEmbeddingClient",
    "MockMessageService",
    "MockPool",
    "MockServiceContainer",
    "make_document",
    "sse_frames",
]
