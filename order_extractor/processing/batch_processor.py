"""Parallel extraction of many documents."""

import logging
import os
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

from ..utils.document_loader import split_pages
from .extraction_service import ExtractionResult, OrderExtractionService

logger = logging.getLogger(__name__)


@dataclass
class ExtractionTask:
    """Represents one document to extract."""

    task_id: int
    content: str
    document_id: str | None = None
    context: dict[str, Any] | None = None
    page: int | None = None


@dataclass
class BatchResult:
    """Represents the result of one extraction task."""

    task_id: int
    document_id: str | None = None
    result: ExtractionResult | None = None
    error: str | None = None
    processing_time: float = 0.0


class BatchExtractionProcessor:
    """Extracts documents concurrently; documents share no state.

    Threads are used rather than processes because every worker must share
    the service's registry and learning store.
    """

    def __init__(
        self,
        service: OrderExtractionService,
        num_workers: int | None = None,
    ) -> None:
        """Initialize the batch processor.

        Args:
            service: The shared extraction service
            num_workers: Number of worker threads (defaults to min(4, CPU count))

        """
        self.service = service
        self.num_workers = num_workers or min(4, max(1, os.cpu_count() or 1))
        self._progress_callback: Callable[[int, int], None] | None = None
        self._result_callback: Callable[[BatchResult], None] | None = None
        self._documents_processed = 0
        self._total_documents = 0
        self._start_time: float | None = None

    def set_progress_callback(self, callback: Callable[[int, int], None]) -> None:
        """Set the progress callback function."""
        self._progress_callback = callback

    def set_result_callback(self, callback: Callable[[BatchResult], None]) -> None:
        """Set the per-document completion callback function."""
        self._result_callback = callback

    def process_documents(
        self,
        documents: list[str | tuple[str, str]],
        context: dict[str, Any] | None = None,
        by_page: bool = False,
    ) -> list[BatchResult]:
        """Extract multiple documents in parallel.

        Args:
            documents: Texts, or (document_id, text) pairs
            context: Hints applied to every document
            by_page: Extract each page of a form-feed separated document as
                its own order

        Returns:
            One BatchResult per document (or per page), in input order

        """
        tasks = []
        for item in documents:
            document_id, content = item if isinstance(item, tuple) else (None, item)
            pages = split_pages(content) if by_page else []
            if len(pages) <= 1:
                tasks.append(ExtractionTask(task_id=len(tasks), content=content,
                                            document_id=document_id, context=context))
                continue
            for number, page_text in pages:
                tasks.append(ExtractionTask(task_id=len(tasks), content=page_text,
                                            document_id=f"{document_id or 'document'}#p{number}",
                                            context=context, page=number))

        self._documents_processed = 0
        self._total_documents = len(tasks)
        self._start_time = time.time()

        results: list[BatchResult] = []
        with ThreadPoolExecutor(max_workers=self.num_workers,
                                thread_name_prefix="extraction") as executor:
            futures = [executor.submit(self._process_task, task) for task in tasks]
            for future in as_completed(futures):
                result = future.result()
                results.append(result)
                self._documents_processed += 1

                if self._progress_callback:
                    self._progress_callback(self._documents_processed, self._total_documents)
                if self._result_callback:
                    self._result_callback(result)

        results.sort(key=lambda r: r.task_id)
        return results

    def _process_task(self, task: ExtractionTask) -> BatchResult:
        start_time = time.time()
        try:
            result = self.service.extract(task.content, task.context, task.document_id, page=task.page)
            return BatchResult(
                task_id=task.task_id,
                document_id=task.document_id,
                result=result,
                processing_time=time.time() - start_time,
            )
        except Exception as e:
            logger.error(f"Extraction failed for document {task.document_id or task.task_id}: {e}")
            if self.service.audit_manager:
                self.service.audit_manager.log_error(task.document_id, str(e))
            return BatchResult(
                task_id=task.task_id,
                document_id=task.document_id,
                error=str(e),
                processing_time=time.time() - start_time,
            )

    def get_processing_rate(self) -> float:
        """Get the current processing rate in documents per minute."""
        if not self._start_time or self._documents_processed == 0:
            return 0.0

        elapsed_time = time.time() - self._start_time
        if elapsed_time == 0:
            return 0.0

        return (self._documents_processed / elapsed_time) * 60
