"""
Exceptions raised while reading tblout files and fetching hits.

Library functions raise these; only main() turns them into messages and
exit codes.
"""

from typing import Optional


class ExtractError(Exception):
    """Base class for all extraction errors."""


class FileNotFound(ExtractError, FileNotFoundError):
    """Input tblout or FASTA file does not exist."""

    def __init__(self, path, kind: str = "file", message: Optional[str] = None):
        self.path = path
        self.kind = kind
        super().__init__(message or f"{kind} not found: {path}")


class MalformedRow(ExtractError):
    """A tblout data line does not match the nhmmer column layout."""

    def __init__(self, line_number: int, raw: str, reason: str):
        self.line_number = line_number
        self.raw = raw
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}: {raw.rstrip()!r}")


class InvalidThreshold(ExtractError, ValueError):
    """E-value threshold is not a usable number."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"invalid e-value threshold: {value!r}")


class ExecutableNotFound(ExtractError):
    """esl-sfetch could not be found or is not executable."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"esl-sfetch not found or not executable: {path}\n"
            "Install HMMER (esl-sfetch ships with Easel) or pass --esl-sfetch."
        )


class FetchFailed(ExtractError):
    """esl-sfetch exited with a non-zero status."""

    def __init__(self, target_name: str, returncode: int,
                 stderr: Optional[str] = None, coords: Optional[str] = None):
        self.target_name = target_name
        self.returncode = returncode
        self.stderr = stderr or ""
        self.coords = coords
        where = f"{target_name}:{coords}" if coords else target_name
        message = f"esl-sfetch failed for {where} (exit code {returncode})"
        if self.stderr.strip():
            message += f": {self.stderr.strip()}"
        super().__init__(message)
