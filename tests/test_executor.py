"""Tests for the pipeline executor."""

import asyncio
from pathlib import Path

import pytest

from openapi_transformer.errors import LoadError, PipelineError, ResolutionError
from openapi_transformer.pipeline.executor import Pipeline, run_pipeline
from openapi_transformer.references import TransformerReference

FIXTURES = Path(__file__).parent / "fixtures"
SYNC_PATH = str(FIXTURES / "sync_transformer.py")
ASYNC_PATH = str(FIXTURES / "async_transformer.py")


class Marker:
    """Appends its marker to document['history'] and records the call."""

    def __init__(self, marker, calls):
        self.marker = marker
        self.calls = calls

    def transform_document(self, document):
        self.calls.append(self.marker)
        document.setdefault("history", []).append(self.marker)
        return document


class AsyncMarker(Marker):
    async def transform_document(self, document):
        await asyncio.sleep(0)
        return super().transform_document(document)


class Exploding:
    def transform_document(self, document):
        raise RuntimeError("boom")


class FakeLoader:
    """Loader returning prepared transformers, optionally after a delay."""

    def __init__(self, transformers, delays=None, failures=None):
        self.transformers = transformers
        self.delays = delays or {}
        self.failures = failures or {}
        self.events = []

    async def load(self, reference):
        self.events.append(("start", reference.specifier))
        await asyncio.sleep(self.delays.get(reference.specifier, 0))
        self.events.append(("end", reference.specifier))
        if reference.specifier in self.failures:
            raise self.failures[reference.specifier]
        return self.transformers[reference.specifier]


def refs(*specifiers):
    return [TransformerReference(specifier) for specifier in specifiers]


class TestPipelineFold:
    """Test folding the document through transformers."""

    @pytest.mark.asyncio
    async def test_empty_pipeline_returns_input(self):
        """Test that no transformers returns the very same document."""
        document = {"openapi": "3.0.0"}

        result = await Pipeline(FakeLoader({})).run([], document)

        assert result is document

    @pytest.mark.asyncio
    async def test_applies_in_declared_order(self):
        """Test that T1 runs before T2."""
        calls = []
        loader = FakeLoader({"t1": Marker("t1", calls), "t2": Marker("t2", calls)})

        result = await Pipeline(loader).run(refs("t1", "t2"), {})

        assert result == {"history": ["t1", "t2"]}

    @pytest.mark.asyncio
    async def test_output_feeds_next_transformer(self):
        """Test that each transformer receives the previous transformer's result."""

        class Replace:
            def transform_document(self, document):
                return {"replaced": True}

        class Check:
            def __init__(self):
                self.seen = None

            def transform_document(self, document):
                self.seen = document
                return document

        check = Check()
        loader = FakeLoader({"replace": Replace(), "check": check})

        result = await Pipeline(loader).run(refs("replace", "check"), {"original": True})

        assert check.seen == {"replaced": True}
        assert result == {"replaced": True}

    @pytest.mark.asyncio
    async def test_awaits_async_transformers(self):
        """Test mixing synchronous and asynchronous transformers."""
        calls = []
        loader = FakeLoader(
            {"a": AsyncMarker("a", calls), "b": Marker("b", calls), "c": AsyncMarker("c", calls)}
        )

        result = await Pipeline(loader).run(refs("a", "b", "c"), {})

        assert result == {"history": ["a", "b", "c"]}

    @pytest.mark.asyncio
    async def test_non_object_documents_pass_through(self):
        """Test that the pipeline does not inspect document shape."""

        class Append:
            def transform_document(self, document):
                return [*document, "x"]

        result = await Pipeline(FakeLoader({"append": Append()})).run(refs("append"), [])

        assert result == ["x"]


class TestPipelineFailures:
    """Test failure handling in the pipeline."""

    @pytest.mark.asyncio
    async def test_fail_fast_stops_later_transformers(self):
        """Test that a failing T2 keeps T1's effect and never runs T3."""
        calls = []
        loader = FakeLoader(
            {"t1": Marker("t1", calls), "t2": Exploding(), "t3": Marker("t3", calls)}
        )
        document = {}

        with pytest.raises(PipelineError) as exc_info:
            await Pipeline(loader).run(refs("t1", "t2", "t3"), document)

        assert document == {"history": ["t1"]}
        assert calls == ["t1"]
        assert exc_info.value.specifier == "t2"
        assert exc_info.value.index == 1
        assert str(exc_info.value) == "RuntimeError: boom applying transformer t2"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_async_rejection_is_attributed(self):
        """Test that an async transformer raising is wrapped like a sync one."""

        class AsyncExploding:
            async def transform_document(self, document):
                raise ValueError("bad document")

        with pytest.raises(PipelineError, match="bad document applying transformer broken"):
            await Pipeline(FakeLoader({"broken": AsyncExploding()})).run(refs("broken"), {})

    @pytest.mark.asyncio
    async def test_load_failure_prevents_any_transform(self):
        """Test that loading errors surface before any transformer runs."""
        calls = []
        error = LoadError("t2", "bad constructor")
        loader = FakeLoader({"t1": Marker("t1", calls)}, failures={"t2": error})
        document = {}

        with pytest.raises(LoadError) as exc_info:
            await Pipeline(loader).run(refs("t1", "t2"), document)

        assert exc_info.value is error
        assert calls == []
        assert document == {}

    @pytest.mark.asyncio
    async def test_resolution_error_propagates_unchanged(self):
        """Test that ResolutionError is not wrapped by the pipeline."""
        error = ResolutionError("missing", None)
        loader = FakeLoader({}, failures={"missing": error})

        with pytest.raises(ResolutionError) as exc_info:
            await Pipeline(loader).run(refs("missing"), {})

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_first_failure_in_declared_order_wins(self):
        """Test that the earliest failing reference is reported, not the fastest."""
        loader = FakeLoader(
            {},
            delays={"slow": 0.05},
            failures={
                "slow": LoadError("slow", "slow failure"),
                "fast": LoadError("fast", "fast failure"),
            },
        )

        with pytest.raises(LoadError) as exc_info:
            await Pipeline(loader).run(refs("slow", "fast"), {})

        assert exc_info.value.specifier == "slow"

    @pytest.mark.asyncio
    async def test_unexpected_loader_errors_become_load_errors(self):
        """Test that arbitrary loader exceptions are attributed to the reference."""
        loader = FakeLoader({}, failures={"odd": KeyError("odd")})

        with pytest.raises(LoadError) as exc_info:
            await Pipeline(loader).run(refs("odd"), {})

        assert exc_info.value.specifier == "odd"
        assert isinstance(exc_info.value.__cause__, KeyError)


class TestConcurrentLoading:
    """Test that loads run concurrently while the fold stays ordered."""

    @pytest.mark.asyncio
    async def test_delayed_load_still_applied_first(self):
        """Test that a slow-loading A is still applied before a fast-loading B."""
        calls = []
        loader = FakeLoader(
            {"a": Marker("a", calls), "b": Marker("b", calls)},
            delays={"a": 0.05},
        )

        result = await Pipeline(loader).run(refs("a", "b"), {})

        assert result == {"history": ["a", "b"]}
        # B finished loading first, so loads overlapped
        assert loader.events.index(("end", "b")) < loader.events.index(("end", "a"))

    @pytest.mark.asyncio
    async def test_all_loads_start_before_any_finishes(self):
        """Test that every load is scheduled up front."""
        calls = []
        loader = FakeLoader(
            {"a": Marker("a", calls), "b": Marker("b", calls)},
            delays={"a": 0.01, "b": 0.01},
        )

        await Pipeline(loader).run(refs("a", "b"), {})

        assert loader.events[:2] == [("start", "a"), ("start", "b")]


class TestRunPipeline:
    """Test the synchronous entry point with real transformer modules."""

    def test_sync_transformer_scenario(self):
        """Test {} through sync-transformer."""
        result = run_pipeline([TransformerReference(SYNC_PATH)], {})

        assert result == {"x-transformers": [["sync-transformer"]]}

    def test_sync_and_async_transformer_scenario(self):
        """Test {} through sync-transformer then async-transformer."""
        references = [TransformerReference(SYNC_PATH), TransformerReference(ASYNC_PATH)]

        result = run_pipeline(references, {})

        assert result == {"x-transformers": [["sync-transformer"], ["async-transformer"]]}

    def test_arguments_reach_constructor(self):
        """Test that reference arguments are passed to the transformer."""
        references = [TransformerReference(ASYNC_PATH, ("a", 1))]

        result = run_pipeline(references, {})

        assert result == {"x-transformers": [["async-transformer", "a", 1]]}

    def test_relative_paths_use_given_cwd(self):
        """Test that command-line references resolve from the cwd argument."""
        references = [TransformerReference("./sync_transformer.py")]

        result = run_pipeline(references, {}, cwd=FIXTURES)

        assert result == {"x-transformers": [["sync-transformer"]]}

    def test_transformer_rejecting_document(self):
        """Test that a transformer's own shape check surfaces as PipelineError."""
        with pytest.raises(PipelineError, match="Invalid OpenAPI document applying transformer"):
            run_pipeline([TransformerReference(SYNC_PATH)], [])

    def test_module_name_follows_origin_across_runs(self, tmp_path):
        """Test that a same-named module from another origin is not reused."""
        for name in ("a", "b"):
            (tmp_path / name).mkdir()
            (tmp_path / name / "executor_origin_plugin.py").write_text(
                "class Transformer:\n"
                "    def transform_document(self, document):\n"
                f"        return {{**document, 'from': {name!r}}}\n"
            )

        first = run_pipeline(
            [TransformerReference("executor_origin_plugin", (), tmp_path / "a")], {}
        )
        second = run_pipeline(
            [TransformerReference("executor_origin_plugin", (), tmp_path / "b")], {}
        )

        assert first == {"from": "a"}
        assert second == {"from": "b"}
