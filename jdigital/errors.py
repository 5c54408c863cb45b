class ActionError(Exception):
    status_code = 400
    default_message = 'Unable to complete the request.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ActionError):
    default_message = 'Please complete all required fields.'

    def __init__(self, errors, message=None):
        self.errors = dict(errors or {})
        first = None
        for messages in self.errors.values():
            if messages:
                first = messages[0]
                break
        super().__init__(message or first)


class Unauthorized(ActionError):
    status_code = 401
    default_message = 'Unauthorized'


class RateLimited(ActionError):
    status_code = 429
    default_message = 'Too many submissions. Please try again in a minute.'

    def __init__(self, message=None, retry_after=0):
        self.retry_after = retry_after
        super().__init__(message)


class Conflict(ActionError):
    status_code = 409
    default_message = 'Unable to save. A record with the same value may already exist.'


class NotFound(ActionError):
    status_code = 404
    default_message = 'Not found.'


class StorageError(ActionError):
    status_code = 502
    default_message = 'Failed to upload file'
