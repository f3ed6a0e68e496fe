from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class ArtifactPaths:
    request_id: str
    input_path: Path
    output_path: Path


class RendererGateway(Protocol):
    def render(self, input_path: Path, output_path: Path, title: str | None = None) -> bytes:
        """Render the HTML file at input_path to a PDF at output_path and return its bytes.
        This is a blocking call; callers should offload to threads if needed.
        """


class StagingGateway(Protocol):
    def prepare(self) -> ArtifactPaths:
        ...

    def discard(self, paths: ArtifactPaths) -> None:
        ...
