class ShortlinkError(Exception):
    """Base class for link lifecycle errors."""


class InvalidURL(ShortlinkError):
    def __init__(self, url=None):
        super().__init__("Invalid URL")
        self.url = url


class InvalidFormat(ShortlinkError):
    def __init__(self, code=None):
        super().__init__("Code must be 6-8 letters/numbers")
        self.code = code


class CodeConflict(ShortlinkError):
    def __init__(self, code=None):
        super().__init__("Code already exists")
        self.code = code


class NotFound(ShortlinkError):
    """No active link for the code. Covers both never-created and soft-deleted."""

    def __init__(self, code=None):
        super().__init__("Not found")
        self.code = code


class StorageFailure(ShortlinkError):
    """Unexpected fault from the persistence layer, including timeouts."""


class CodeSpaceExhausted(StorageFailure):
    def __init__(self, attempts: int):
        super().__init__(f"Could not generate unique code after {attempts} attempts")
        self.attempts = attempts
