"""
Custom exceptions for tendermint-exporter
"""


class TendermintExporterException(Exception):
    """Base exception for tendermint-exporter"""
    pass


class FetchError(TendermintExporterException):
    """A single sub-fetch of a scrape failed"""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(message)


class TransportError(FetchError):
    """Network or connection failure, including HTTP error statuses"""
    pass


class EmptyResponseError(FetchError):
    """Request succeeded but returned no usable payload"""
    pass


class DecodeError(FetchError):
    """Malformed or unparsable payload"""
    pass


class ProcessError(FetchError):
    """Version binary could not be spawned or exited non-zero"""

    def __init__(self, source: str, message: str, output: str = ""):
        self.output = output
        super().__init__(source, message)


class RenderError(TendermintExporterException):
    """Snapshot cannot be rendered"""
    pass


class ValidationError(TendermintExporterException):
    """Configuration validation error"""
    pass
