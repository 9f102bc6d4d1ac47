class ReconError(Exception):
    """Base class for errors that end a run with a non-zero exit status."""

class UsageError(ReconError):
    pass

class InvalidTargetError(ReconError):
    def __init__(self, target: str):
        super().__init__(f"Invalid target URL: {target}")
        self.target = target

class ReportWriteError(ReconError):
    def __init__(self, path: str, cause: OSError):
        super().__init__(f"could not write report {path}: {cause}")
        self.path = path
        self.cause = cause
