import logging
import os
import signal
import subprocess
import uuid
from pathlib import Path

from .errors import RendererError, RendererTimeoutError, StagingError
from .interfaces import ArtifactPaths, RendererGateway, StagingGateway

logger = logging.getLogger(__name__)


class LocalStaging(StagingGateway):
    def __init__(self, root: str) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def prepare(self) -> ArtifactPaths:
        """Ensure the staging directory exists and return a fresh pair of artifact paths.

        Names carry a random request id, so concurrent requests never share files.
        Nothing is created besides the directory itself.
        """
        try:
            self._root.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise StagingError(f"failed to create staging directory: {e}") from e
        request_id = uuid.uuid4().hex
        return ArtifactPaths(
            request_id=request_id,
            input_path=self._root / f"input_{request_id}.html",
            output_path=self._root / f"output_{request_id}.pdf",
        )

    def discard(self, paths: ArtifactPaths) -> None:
        for p in (paths.input_path, paths.output_path):
            try:
                p.unlink(missing_ok=True)
            except OSError as e:
                # never mask the error that got us here
                logger.warning("could not remove staged artifact %s: %s", p, e)


class ChromiumRenderer(RendererGateway):
    """Prints a staged HTML file to PDF with a headless Chromium process."""

    def __init__(
        self,
        binary: str = "chromium-browser",
        *,
        virtual_time_budget_ms: int = 5000,
        timeout: float | None = 60.0,
    ) -> None:
        self._binary = binary
        self._virtual_time_budget_ms = virtual_time_budget_ms
        self._timeout = timeout

    def command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self._binary,
            "--headless",
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            f"--print-to-pdf={output_path}",
            "--print-to-pdf-no-header",
            "--run-all-compositor-stages-before-draw",
            f"--virtual-time-budget={self._virtual_time_budget_ms}",
            Path(input_path).resolve().as_uri(),
        ]

    def render(self, input_path: Path, output_path: Path, title: str | None = None) -> bytes:
        # title is accepted for interface compatibility; Chromium's print flags have no use for it
        cmd = self.command(input_path, output_path)
        try:
            # own session, so a timeout can take down zygote and renderer children too
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("chromium could not be launched: %s", e)
            raise RendererError(f"chromium failed: {e}") from e

        with proc:
            try:
                raw, _ = proc.communicate(timeout=self._timeout)
            except subprocess.TimeoutExpired as e:
                _kill_group(proc)
                raw, _ = proc.communicate()
                output = _decode(raw)
                logger.warning("chromium exceeded %ss deadline rendering %s", self._timeout, input_path)
                raise RendererTimeoutError(
                    f"chromium timed out after {self._timeout}s, output: {output}", output=output
                ) from e

        output = _decode(raw)
        if proc.returncode != 0:
            logger.warning("chromium exited with status %d", proc.returncode)
            raise RendererError(
                f"chromium failed: exit status {proc.returncode}, output: {output}", output=output
            )

        try:
            return Path(output_path).read_bytes()
        except OSError as e:
            raise StagingError(f"failed to read PDF file: {e}", output=output) from e


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    proc.wait()


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")
