"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class RemoteSourceError(ServiceError):
    """The remote collection could not be obtained."""


class ServerError(RemoteSourceError):
    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Remote source responded with status {status_code}")


class NetworkError(RemoteSourceError):
    pass


class SearchStoreError(ServiceError):
    pass
