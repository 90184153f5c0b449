import asyncio
import inspect
import time
from typing import Iterable, List, Optional, Tuple
from rasterkit.domain.errors import EmptyBatchError, InvalidParameterError
from rasterkit.domain.interfaces import IProgressCallback
from rasterkit.domain.models import ExportResult
from rasterkit.kernel.system.config import APP_CONFIG
from rasterkit.kernel.system.logging import get_logger
from rasterkit.services.batch.models import (
    BatchItem,
    BatchOperation,
    BatchProgress,
    BatchResult,
    BatchRun,
    BatchStatus,
    ItemResult,
    ItemStatus,
)
from rasterkit.services.export.service import ExportService

logger = get_logger(__name__)


class BatchCoordinator:
    """
    Runs each item through decode -> pipeline -> encode.
    One bad item is recorded as FAILED and never aborts its siblings.

    status / progress mirror the most recently started run; every run keeps
    its own counters, so overlapping runs report against their own totals.
    """

    def __init__(
        self,
        export_service: Optional[ExportService] = None,
        progress_callback: Optional[IProgressCallback] = None,
    ) -> None:
        self.exporter = export_service if export_service is not None else ExportService()
        self.progress_callback = progress_callback
        self._current: Optional[BatchRun] = None

    @property
    def status(self) -> BatchStatus:
        return self._current.status if self._current is not None else BatchStatus.IDLE

    @property
    def progress(self) -> Optional[BatchProgress]:
        return self._current.progress if self._current is not None else None

    def process_item(self, item: BatchItem) -> ExportResult:
        params = item.parameters
        op = BatchOperation(item.operation)
        steps = op.pipeline(params)

        if op == BatchOperation.COMPRESS:
            return self.exporter.compress(
                item.source,
                max_bytes=params.max_bytes,
                quality=params.encode.quality,
                name=item.name,
                hint=item.hint,
                steps=steps,
                prefix=op.prefix,
            )

        return self.exporter.render(
            item.source,
            steps=steps,
            request=params.encode,
            name=item.name,
            hint=item.hint,
            prefix=op.prefix,
        )

    def _start(self, items: Iterable[BatchItem]) -> Tuple[BatchRun, List[BatchItem], List[ItemResult]]:
        batch = list(items)
        if not batch:
            raise EmptyBatchError("Batch contains no items")

        run = BatchRun(progress=BatchProgress(0, len(batch)))
        self._current = run
        logger.info(f"Starting batch of {len(batch)} items...")
        return run, batch, [ItemResult(index=i, name=item.name) for i, item in enumerate(batch)]

    def _settle(self, result: ItemResult, output: Optional[ExportResult], error: Optional[Exception]) -> None:
        if error is None:
            result.output = output
            result.status = ItemStatus.DONE
        else:
            logger.error(f"Exception during batch processing for {result.name}: {error}")
            result.error = str(error) or type(error).__name__
            result.exception = error
            result.status = ItemStatus.FAILED

    def _finish(self, run: BatchRun, results: List[ItemResult], start_time: float) -> BatchResult:
        failed = sum(1 for r in results if r.status == ItemStatus.FAILED)
        run.status = BatchStatus.PARTIALLY_FAILED if failed else BatchStatus.COMPLETED

        elapsed = time.perf_counter() - start_time
        logger.info(f"Batch complete in {elapsed:.2f}s: {len(results) - failed} done, {failed} failed")
        return BatchResult(status=run.status, items=results)

    def run(self, items: Iterable[BatchItem]) -> BatchResult:
        """
        Sequential batch, strictly in input order.
        """
        if self.progress_callback is not None and inspect.iscoroutinefunction(self.progress_callback):
            raise InvalidParameterError("Coroutine progress callbacks require run_async()")

        run, batch, results = self._start(items)
        start_time = time.perf_counter()

        try:
            for item, result in zip(batch, results):
                result.status = ItemStatus.PROCESSING
                try:
                    self._settle(result, self.process_item(item), None)
                except Exception as e:
                    self._settle(result, None, e)

                progress = run.advance(item.name)
                if self.progress_callback is not None:
                    self.progress_callback(progress.completed, progress.total, item.name)
        except BaseException:
            run.status = BatchStatus.IDLE
            raise

        return self._finish(run, results, start_time)

    async def run_async(self, items: Iterable[BatchItem], concurrency: int = 1) -> BatchResult:
        """
        Pixel work runs in worker threads so the loop stays free to report
        progress. concurrency > 1 processes independent items in parallel;
        completion order may then differ from input order.
        """
        if concurrency < 1:
            raise InvalidParameterError(f"concurrency must be >= 1, got {concurrency}")

        run, batch, results = self._start(items)
        start_time = time.perf_counter()
        semaphore = asyncio.Semaphore(min(concurrency, APP_CONFIG.max_workers))

        async def _worker(item: BatchItem, result: ItemResult) -> None:
            async with semaphore:
                result.status = ItemStatus.PROCESSING
                try:
                    output = await asyncio.to_thread(self.process_item, item)
                    self._settle(result, output, None)
                except Exception as e:
                    self._settle(result, None, e)

                progress = run.advance(item.name)
                if self.progress_callback is not None:
                    ret = self.progress_callback(progress.completed, progress.total, item.name)
                    if inspect.isawaitable(ret):
                        await ret

        try:
            if concurrency == 1:
                for item, result in zip(batch, results):
                    await _worker(item, result)
            else:
                await asyncio.gather(*(_worker(item, result) for item, result in zip(batch, results)))
        except asyncio.CancelledError:
            # In-flight outputs are discarded
            logger.info("Batch cancelled")
            run.status = BatchStatus.IDLE
            raise
        except Exception:
            run.status = BatchStatus.IDLE
            raise

        return self._finish(run, results, start_time)
