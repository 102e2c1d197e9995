"""Exceptions raised by the PDF export pipeline.

Every error carries the engine and the stage it came from (when known) so a
failed export can be traced to the backend call that broke.
"""


class PdfExportError(Exception):
    def __init__(self, message: str, *, engine: str | None = None, stage: str | None = None):
        self.engine = engine
        self.stage = stage
        context = ", ".join(
            f"{key}={value}" for key, value in (("engine", engine), ("stage", stage)) if value
        )
        super().__init__(f"{message} ({context})" if context else message)


class EmptyInputError(PdfExportError):
    """HTML content was missing or blank."""


class InvalidOptionsError(PdfExportError):
    """PDF options were required but not supplied."""


class UnsupportedEngineError(PdfExportError):
    """The requested rendering engine is not known."""


class BrowserInitializationError(PdfExportError):
    """The browser could not be launched."""


class RenderFailedError(PdfExportError):
    """The backend failed while rendering or returned an empty document."""


class ExporterDisposedError(PdfExportError):
    """The exporter was used after it had been closed."""


class RenderCancelledError(PdfExportError):
    """The caller's cancel event fired before the export completed."""
