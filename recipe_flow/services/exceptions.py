from __future__ import annotations

class ServiceError(RuntimeError):
    """Base class for service-layer errors."""

class LLMError(ServiceError):
    """Errors from the recipe generator adapter."""

class RepoError(ServiceError):
    """Errors from repositories (I/O, lock, encode)."""

class ImportFileError(ServiceError):
    """An uploaded file that does not contain an exported recipe."""

    def __init__(self, filename: str, errors: list[str]):
        super().__init__(f"{filename}: {'; '.join(errors)}")
        self.filename = filename
        self.errors = errors
