# tools/errors.py


class ToolExecutionError(Exception):
    """
    Business-rule rejection raised by a tool before anything is written.
    The message is shown to the user as-is.
    """
    def __init__(self, message, field=None):
        self.field = field
        super().__init__(message)
