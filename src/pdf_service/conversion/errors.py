class ConversionError(Exception):
    """Base error for a failed HTML to PDF conversion.

    ``output`` holds whatever the renderer printed, when there is any, so the
    HTTP layer can surface it for diagnosis.
    """

    def __init__(self, message: str, *, output: str = "") -> None:
        super().__init__(message)
        self.output = output

    def wrap(self, context: str) -> "ConversionError":
        """Return a copy of the same type whose message is prefixed by ``context``."""
        err = type(self)(f"{context}: {self}", output=self.output)
        err.__cause__ = self
        return err


class StagingError(ConversionError):
    """Writing or reading a staged artifact failed."""


class RendererError(ConversionError):
    """The browser could not be launched or exited non-zero."""


class RendererTimeoutError(RendererError):
    """The browser did not finish before its deadline and was killed."""


class ServiceBusyError(ConversionError):
    """No render slot became free within the queue timeout."""
