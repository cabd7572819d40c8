"""Exception hierarchy for the properties/workbook converter."""
from typing import Optional


class ConverterError(Exception):
    """Base class for all conversion errors raised by propsxls."""


class ConfigurationError(ConverterError):
    """A command-line argument or configuration value is missing or invalid."""


class FormatError(ConverterError):
    """Input content does not have the expected structure."""


class PropertiesFormatError(FormatError):
    """A .properties file could not be parsed."""

    def __init__(self, message: str, path: Optional[str] = None, line_number: Optional[int] = None):
        self.reason = message
        self.path = path
        self.line_number = line_number
        location = path or '<string>'
        if line_number is not None:
            location = f"{location}:{line_number}"
        super().__init__(f"{location}: {message}")


class WorkbookFormatError(FormatError):
    """The workbook cannot be opened or its layout is not the expected one."""
