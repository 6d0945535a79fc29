class MaxtimeError(Exception):
    """
    Base for every failure that aborts a run. Always tied to the path that
    caused it so the single diagnostic line we print is actionable.
    """
    description = "error"

    def __init__(self, path:str, reason:str):
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self):
        return f"{self.description} {self.path}: {self.reason}"


class MetadataError(MaxtimeError):
    description = "error reading metadata of"


class TimestampError(MaxtimeError):
    description = "unusable mtime for"


class TimestampUnavailableError(TimestampError): pass


class PreEpochError(TimestampError): pass


class TimestampOverflowError(TimestampError): pass


class TraversalError(MaxtimeError):
    description = "error walking"


class StampError(MaxtimeError):
    description = "stamp file"
