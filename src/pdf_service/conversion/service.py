import asyncio
import logging

from .errors import ConversionError, ServiceBusyError, StagingError
from .interfaces import RendererGateway, StagingGateway

logger = logging.getLogger(__name__)


class ConversionService:
    """Core domain service orchestrating a single HTML to PDF render.

    This service is framework-agnostic. Each call stages the HTML, hands it to
    the renderer in a worker thread and removes both artifacts afterwards,
    whatever the outcome. At most ``max_concurrent`` renders run at once;
    callers that cannot get a slot within ``queue_timeout`` seconds are turned
    away with ServiceBusyError.
    """

    def __init__(
        self,
        staging: StagingGateway,
        renderer: RendererGateway,
        *,
        max_concurrent: int = 4,
        queue_timeout: float = 30.0,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._staging = staging
        self._renderer = renderer
        self._max_concurrent = max_concurrent
        self._queue_timeout = queue_timeout
        self._slots = asyncio.Semaphore(max_concurrent)
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def convert(self, html: str, title: str | None = None) -> bytes:
        try:
            async with asyncio.timeout(self._queue_timeout):
                await self._slots.acquire()
        except TimeoutError as e:
            raise ServiceBusyError(
                f"all {self._max_concurrent} render slots busy for {self._queue_timeout}s"
            ) from e
        self._in_flight += 1
        try:
            return await self._convert(html, title)
        finally:
            self._in_flight -= 1
            self._slots.release()

    async def _convert(self, html: str, title: str | None) -> bytes:
        paths = self._staging.prepare()
        try:
            try:
                await self._in_thread(paths.input_path.write_text, html, encoding="utf-8")
            except OSError as e:
                raise StagingError(f"failed to write HTML file: {e}") from e

            try:
                pdf = await self._in_thread(
                    self._renderer.render, paths.input_path, paths.output_path, title
                )
            except ConversionError as e:
                raise e.wrap("failed to convert HTML to PDF") from e
        finally:
            self._staging.discard(paths)

        logger.info("rendered request %s: %d bytes", paths.request_id, len(pdf))
        return pdf

    async def _in_thread(self, fn, *args, **kwargs):
        """Run a blocking call in a worker thread.

        A thread cannot be interrupted, so when the caller is cancelled this
        waits for the call to finish before letting the cancellation through.
        Cleanup and the slot release then happen after the browser is done.
        """
        task = asyncio.ensure_future(asyncio.to_thread(fn, *args, **kwargs))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                logger.warning("cancelled call finished with error: %s", task.exception())
            raise
