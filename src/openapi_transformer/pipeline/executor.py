"""Run a document through an ordered list of transformers.

Running happens in two phases:

1. Load: every transformer is resolved and instantiated before the document
   is touched, so a bad specifier or constructor argument fails the run
   without any transformer having run. Loads are scheduled concurrently.
2. Fold: transformers are applied one at a time in declared order, each
   receiving the previous transformer's output. Transformers may return the
   new document directly or as an awaitable.
"""

import asyncio
import inspect
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from openapi_transformer.errors import LoadError, PipelineError, TransformerError
from openapi_transformer.pipeline.loader import Loader, TransformerLoader, TransformerProtocol
from openapi_transformer.pipeline.resolver import Resolver
from openapi_transformer.references import TransformerReference

logger = logging.getLogger(__name__)


class Pipeline:
    """Loads transformers and folds a document through them."""

    def __init__(self, loader: Loader | None = None) -> None:
        self.loader = loader if loader is not None else TransformerLoader()

    async def load_all(
        self, references: Sequence[TransformerReference]
    ) -> list[TransformerProtocol]:
        """
        Instantiate every referenced transformer.

        All loads run to completion; if any failed, the failure of the first
        reference in declared order is raised.

        Raises:
            ResolutionError: If a specifier cannot be resolved
            LoadError: If a transformer cannot be imported or constructed
        """
        tasks = [asyncio.create_task(self.loader.load(reference)) for reference in references]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        transformers = []
        for reference, result in zip(references, results):
            if isinstance(result, TransformerError):
                raise result
            if isinstance(result, Exception):
                reason = f"{type(result).__name__}: {result}"
                raise LoadError(reference.specifier, reason) from result
            if isinstance(result, BaseException):
                raise result
            transformers.append(result)
        return transformers

    async def apply(
        self,
        references: Sequence[TransformerReference],
        transformers: Sequence[TransformerProtocol],
        document: Any,
    ) -> Any:
        """
        Fold ``document`` through ``transformers`` in order.

        Raises:
            PipelineError: If a transformer raises; later transformers do not run
        """
        total = len(transformers)
        for index, (reference, transformer) in enumerate(zip(references, transformers)):
            logger.debug("Applying transformer %d/%d: %s", index + 1, total, reference.specifier)
            try:
                result = transformer.transform_document(document)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                raise PipelineError(reference.specifier, index, f"{type(e).__name__}: {e}") from e
            document = result
        return document

    async def run(self, references: Sequence[TransformerReference], document: Any) -> Any:
        """
        Load the referenced transformers and apply them to ``document``.

        Args:
            references: Transformers in application order
            document: The parsed OpenAPI document

        Returns:
            The document returned by the last transformer, or ``document``
            itself when there are no transformers

        Raises:
            ResolutionError, LoadError: If a transformer cannot be loaded
            PipelineError: If a transformer fails while transforming
        """
        references = list(references)
        if not references:
            return document

        transformers = await self.load_all(references)
        return await self.apply(references, transformers, document)


def run_pipeline(
    references: Sequence[TransformerReference], document: Any, cwd: Path | None = None
) -> Any:
    """
    Run the pipeline to completion from synchronous code.

    Args:
        references: Transformers in application order
        document: The parsed OpenAPI document
        cwd: Directory command-line transformers are resolved from
             (the process working directory when None)
    """
    pipeline = Pipeline(TransformerLoader(Resolver(cwd)))
    return asyncio.run(pipeline.run(references, document))
