"""
Chat pipeline orchestration.

``RAGPipeline`` holds only shared, immutable collaborators. Each request
gets its own ``PipelineRun`` carrying the state machine, the stream
decoder and the accumulated reply, so concurrent requests never share
mutable state.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from ..llm.completion_streamer import CompletionStream, CompletionStreamer
from ..llm.embedding_client import EmbeddingClient
from ..llm.stream_decoder import StreamDecoder, StreamDelta
from ..models import ConversationTurn, RetrievalMatch
from ..storage.database import MessageService
from ..utils.logging import log_event, track
from .prompts import ContextAssembler
from .retriever import SimilarityRetriever
from .types import ContextConfig, PipelineState, Prompt, is_valid_transition

DeltaCallback = Callable[[StreamDelta], Awaitable[None]]


class PipelineRun:
    """
    One chat request from embedding to persisted reply.

    Created by ``RAGPipeline.start`` with the upstream stream already open.
    Consume ``stream()`` exactly once.
    """

    def __init__(
        self,
        message: str,
        conversation_id: Optional[str],
        message_service: Optional[MessageService],
        on_delta: Optional[DeltaCallback] = None,
    ):
        self.message = message
        self.conversation_id = conversation_id
        self._message_service = message_service
        self._on_delta = on_delta

        self.state = PipelineState.IDLE
        self.error: Optional[BaseException] = None
        self.decoder = StreamDecoder()
        self.matches: List[RetrievalMatch] = []
        self.prompt: Optional[Prompt] = None
        self.persisted = False

        self._deltas: List[str] = []
        self._upstream: Optional[CompletionStream] = None

    @property
    def reply(self) -> str:
        """Concatenation of every delta decoded so far."""
        return "".join(self._deltas)

    @property
    def delta_count(self) -> int:
        return len(self._deltas)

    def transition(self, target: PipelineState) -> None:
        if not is_valid_transition(self.state, target):
            raise RuntimeError(
                f"Invalid pipeline transition {self.state.value} -> {target.value}"
            )
        log_event(
            "pipeline_state_changed",
            {
                "conversation_id": self.conversation_id,
                "from_state": self.state.value,
                "to_state": target.value,
            },
            level=logging.DEBUG,
        )
        self.state = target

    def fail(self, error: BaseException) -> None:
        if self.state.is_terminal:
            return
        self.error = error
        self.transition(PipelineState.FAILED)

    def attach(self, upstream: CompletionStream) -> None:
        self._upstream = upstream

    async def stream(self) -> AsyncIterator[bytes]:
        """
        Forward the upstream body chunk by chunk.

        Each chunk is decoded and its deltas are handed to ``on_delta`` in
        order before the chunk itself is yielded. When the upstream ends
        normally the full reply is persisted once. If the consumer stops
        early or the upstream fails, the upstream is closed and nothing
        is persisted.

        Raises:
            UpstreamError: The upstream transport failed mid-stream
            RuntimeError: The run has no open stream or was already consumed
        """
        if self._upstream is None or self.state is not PipelineState.STREAMING_IN_FLIGHT:
            raise RuntimeError("Pipeline run has no open stream to consume")

        upstream = self._upstream
        self.transition(PipelineState.STREAMING)

        try:
            async for chunk in upstream.iter_chunks():
                for delta in self.decoder.feed(chunk):
                    self._deltas.append(delta.text)
                    if self._on_delta is not None:
                        await self._on_delta(delta)
                yield chunk
            self.decoder.finish()
        except (GeneratorExit, asyncio.CancelledError) as e:
            log_event(
                "pipeline_cancelled",
                {
                    "conversation_id": self.conversation_id,
                    "deltas_discarded": self.delta_count,
                },
                level=logging.WARNING,
            )
            self.fail(e)
            raise
        except Exception as e:
            log_event(
                "pipeline_stream_failed",
                {
                    "conversation_id": self.conversation_id,
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "deltas_discarded": self.delta_count,
                },
                level=logging.ERROR,
            )
            self.fail(e)
            raise
        finally:
            upstream.close()

        self.transition(PipelineState.COMPLETED)
        log_event(
            "stream_completed",
            {
                "conversation_id": self.conversation_id,
                "delta_count": self.delta_count,
                "reply_chars": len(self.reply),
                "bytes_received": upstream.bytes_received,
            },
        )
        await self._persist_reply()

    async def _persist_reply(self) -> None:
        if self.persisted:
            return
        self.persisted = True

        if self.conversation_id is None or self._message_service is None:
            log_event(
                "assistant_reply_not_persisted",
                {"reason": "no_conversation"},
                level=logging.DEBUG,
            )
            return

        if not self.reply.strip():
            log_event(
                "assistant_reply_not_persisted",
                {"reason": "empty_reply", "conversation_id": self.conversation_id},
                level=logging.WARNING,
            )
            return

        result = await self._message_service.add_message(
            conversation_id=self.conversation_id,
            role="assistant",
            content=self.reply,
        )
        if result.is_failure():
            log_event(
                "message_save_failed",
                {
                    "conversation_id": self.conversation_id,
                    "role": "assistant",
                    "error": str(result.error),
                },
                level=logging.ERROR,
            )


class RAGPipeline:
    """
    Sequences embedding, retrieval, prompt assembly and completion.

    Errors from any step are re-raised unchanged so the HTTP layer can tell
    rate limits and exhausted quota apart from everything else. Storage
    hooks (history, user message, assistant reply) only log on failure.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        retriever: SimilarityRetriever,
        assembler: ContextAssembler,
        streamer: CompletionStreamer,
        message_service: Optional[MessageService] = None,
        config: Optional[ContextConfig] = None,
    ):
        self.embedding_client = embedding_client
        self.retriever = retriever
        self.assembler = assembler
        self.streamer = streamer
        self.message_service = message_service
        self.config = config or ContextConfig()

    @track(
        operation="rag_pipeline_start",
        include_args=["conversation_id"],
        track_performance=True,
        frequency="low_frequency",
    )
    async def start(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        on_delta: Optional[DeltaCallback] = None,
    ) -> PipelineRun:
        """
        Run the pipeline up to an open upstream stream.

        Args:
            message: The user's question
            conversation_id: Conversation to read history from and append to;
                None runs without history or persistence
            on_delta: Awaited for every decoded delta, in order

        Returns:
            A run whose ``stream()`` yields the raw upstream bytes

        Raises:
            ValueError: Empty message
            EmbeddingError, RetrievalError, RateLimitError,
            QuotaExhaustedError, UpstreamError: Propagated unchanged
        """
        if not message or not message.strip():
            raise ValueError("Message cannot be empty")

        run = PipelineRun(message, conversation_id, self.message_service, on_delta)

        try:
            run.transition(PipelineState.EMBEDDING_IN_FLIGHT)
            query_vector = await self.embedding_client.embed(message)

            run.transition(PipelineState.RETRIEVING)
            run.matches = await self.retriever.retrieve(
                query_vector,
                threshold=self.config.similarity_threshold,
                top_k=self.config.similarity_top_k,
            )

            run.transition(PipelineState.ASSEMBLING)
            # History is read before the new turn is stored so it isn't sent twice
            history = await self._load_history(conversation_id)
            run.prompt = self.assembler.assemble(run.matches, history, message)
            await self._persist_user_message(conversation_id, message)

            run.transition(PipelineState.STREAMING_IN_FLIGHT)
            upstream = await self.streamer.stream(run.prompt.messages)
        except Exception as e:
            log_event(
                "pipeline_failed",
                {
                    "conversation_id": conversation_id,
                    "state": run.state.value,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
                level=logging.ERROR,
            )
            run.fail(e)
            raise

        run.attach(upstream)
        return run

    async def _load_history(
        self, conversation_id: Optional[str]
    ) -> List[ConversationTurn]:
        if conversation_id is None or self.message_service is None:
            return []
        if self.config.history_limit == 0:
            return []

        result = await self.message_service.get_recent_turns(
            conversation_id=conversation_id, limit=self.config.history_limit
        )
        if result.is_failure():
            log_event(
                "conversation_history_unavailable",
                {"conversation_id": conversation_id, "error": str(result.error)},
                level=logging.WARNING,
            )
            return []
        return result.unwrap()

    async def _persist_user_message(
        self, conversation_id: Optional[str], message: str
    ) -> None:
        if conversation_id is None or self.message_service is None:
            return

        result = await self.message_service.add_message(
            conversation_id=conversation_id, role="user", content=message
        )
        if result.is_failure():
            log_event(
                "message_save_failed",
                {
                    "conversation_id": conversation_id,
                    "role": "user",
                    "error": str(result.error),
                },
                level=logging.ERROR,
            )
