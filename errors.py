# errors.py


class CacheSimError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(CacheSimError, ValueError):
    """Cache geometry or config file is unusable. Raised before the cache exists."""


class IllegalRange(CacheSimError, ValueError):
    def __init__(self, low, high):
        super().__init__(f"illegal bit range [{low}, {high}]; need 0 <= low <= high <= 63")
        self.low = low
        self.high = high


class TraceOpenError(CacheSimError):
    def __init__(self, path, reason):
        super().__init__(f"Unable to open trace file {path}: {reason}")
        self.path = path
        self.reason = reason


class TraceFormatError(CacheSimError):
    """
    A single trace record could not be used.
    These are recovered per line: the record is skipped and the run continues.
    """

    def __init__(self, message, line=None, line_number=None):
        super().__init__(message)
        self.line = line
        self.line_number = line_number


class MalformedTraceLine(TraceFormatError):
    pass


class UnknownOperation(TraceFormatError):
    def __init__(self, operation, line=None, line_number=None):
        super().__init__(f"Invalid memory access attempted: {operation!r}", line, line_number)
        self.operation = operation
