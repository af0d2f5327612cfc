class FetchError(Exception):
    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class UrlValidationError(Exception):
    def __init__(self, message: str, url: str | None = None):
        self.message = message
        self.url = url
        super().__init__(message)


class ExportError(Exception):
    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(message)
