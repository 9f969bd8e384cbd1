class ClearViewError(Exception):
    """
    Base class for errors that are shown to the user. The message is the user facing text.
    """

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidFileType(ClearViewError):
    pass


class FileTooLarge(ClearViewError):
    pass


class UnreadableImage(ClearViewError):
    pass


class RemoteProcessingFailed(ClearViewError):
    pass
