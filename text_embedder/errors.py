"""
Error kinds
============
Every failure the embedder can report carries an HTTP-style status code so
that the facade can turn it into an ``EmbedResult`` without guessing.

    EmbedderError
      ModelLoadError
        ModelFileNotFoundError   404  model / vocab file missing
        GraphLoadError           500  graph failed to parse or compile
      InvalidModelShapeError     400  input/output tensor contract unmet
      InvalidArgumentError       400  malformed provider id or credential
      ProviderError              400  non-200 response from the provider
      ModelNotFoundError         404  model absent from provider listing
"""

from typing import Optional


class EmbedderError(Exception):
    """Base class for failures surfaced to callers as a status + message."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ModelLoadError(EmbedderError):
    status_code = 500


class ModelFileNotFoundError(ModelLoadError, FileNotFoundError):
    status_code = 404


class GraphLoadError(ModelLoadError):
    status_code = 500


class InvalidModelShapeError(EmbedderError):
    status_code = 400


class InvalidArgumentError(EmbedderError, ValueError):
    status_code = 400


class ProviderError(EmbedderError):
    """Non-200 (or unreachable) provider.  ``body`` holds the raw response."""

    status_code = 400

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class ModelNotFoundError(EmbedderError):
    status_code = 404
