class MalformedURL(ValueError):
    """Input could not be parsed as an absolute URL."""

    def __init__(self, url: str, reason: str):
        super().__init__(reason)
        self.url = url
        self.reason = reason


class DetectorFault(RuntimeError):
    """A single detector blew up. Logged and skipped; never reaches the caller."""

    def __init__(self, key: str, cause: BaseException):
        super().__init__(f"{key}: {cause!r}")
        self.key = key
        self.cause = cause
