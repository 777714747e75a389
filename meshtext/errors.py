from typing import Optional


class MeshParseError(Exception):
    """
    Base class for everything that can go wrong while reading a mesh file.
    """

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is not None:
            return f"Line {self.line}: {self.message}"

        return self.message


class UnexpectedEndOfInput(MeshParseError):
    def __init__(self):
        super().__init__("Unexpected end of file.")


class InvalidHeader(MeshParseError):
    def __str__(self):
        return f"Invalid header: {self.message}"


class InvalidToken(MeshParseError):
    pass


class InvalidCount(MeshParseError):
    pass


class ValidationFailed(MeshParseError):
    def __str__(self):
        return f"Validation failed: {self.message}"
