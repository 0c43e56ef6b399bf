class ShareError(Exception):
    """Base exception for sharing and permission resolution errors"""
    def __init__(self, message: str, status_code: int = 500, code: str = 'SHARE_ERROR'):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class NotFound(ShareError):
    """A referenced document, folder, user or share does not exist"""
    def __init__(self, message: str = "Not found", code: str = 'NOT_FOUND'):
        super().__init__(message, 404, code)


class ValidationError(ShareError):
    """Malformed permission value or missing required field"""
    def __init__(self, message: str, code: str = 'VALIDATION_ERROR'):
        super().__init__(message, 400, code)


class Forbidden(ShareError):
    # Callers never learn why they were refused
    def __init__(self):
        super().__init__("Forbidden", 403, 'FORBIDDEN')


class InconsistentState(ShareError):
    """The folder hierarchy is corrupted (parent cycle or runaway depth)"""
    def __init__(self, message: str, folder_id: int = None):
        self.folder_id = folder_id
        super().__init__(message, 409, 'INCONSISTENT_STATE')
