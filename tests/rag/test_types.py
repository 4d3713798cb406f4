import pytest

from medassist.rag import BackfillReport, ContextConfig, PipelineState
from medassist.rag.types import BackfillFailure, is_valid_transition


class TestPipelineState:
    def test_happy_path_is_valid(self):
        path = [
            PipelineState.IDLE,
            PipelineState.EMBEDDING_IN_FLIGHT,
            PipelineState.RETRIEVING,
            PipelineState.ASSEMBLING,
            PipelineState.STREAMING_IN_FLIGHT,
            PipelineState.STREAMING,
            PipelineState.COMPLETED,
        ]

        for current, target in zip(path, path[1:]):
            assert is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (PipelineState.IDLE, PipelineState.RETRIEVING),
            (PipelineState.STREAMING, PipelineState.ASSEMBLING),
            (PipelineState.COMPLETED, PipelineState.FAILED),
            (PipelineState.FAILED, PipelineState.IDLE),
            (PipelineState.IDLE, PipelineState.IDLE),
        ],
    )
    def test_invalid_transitions(self, current, target):
        assert not is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "state", [s for s in PipelineState if not s.is_terminal]
    )
    def test_failed_reachable_from_non_terminal(self, state):
        assert is_valid_transition(state, PipelineState.FAILED)


class TestContextConfig:
    def test_defaults(self):
        config = ContextConfig()

        assert config.similarity_threshold == 0.5
        assert config.similarity_top_k == 3
        assert config.history_limit == 10

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"similarity_top_k": 0},
            {"similarity_threshold": 1.5},
            {"similarity_threshold": -0.1},
            {"history_limit": -1},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ContextConfig(**kwargs)


def test_backfill_report_counts():
    report = BackfillReport(total=3, succeeded=2)
    report.failures.append(BackfillFailure("d2", "EmbeddingError", "HTTP 500"))

    assert report.failed == 1
    assert report.to_dict()["failures"] == [
        {"document_id": "d2", "error_type": "EmbeddingError", "error": "HTTP 500"}
    ]
