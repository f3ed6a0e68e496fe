"""
Domain layer for HTML to PDF conversion.
Provides interfaces (gateways) and a service to orchestrate a single render,
abstracting the staging directory and the headless browser so front-ends
(HTTP or others) can use the same core logic.
"""

from .errors import (
    ConversionError,
    RendererError,
    RendererTimeoutError,
    ServiceBusyError,
    StagingError,
)
from .interfaces import ArtifactPaths, RendererGateway, StagingGateway
from .service import ConversionService
