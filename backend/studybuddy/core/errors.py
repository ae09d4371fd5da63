"""
Error taxonomy for the study pipeline.

  StudyBuddyError
  ├── ExtractionError
  │     ├── UnsupportedFormatError     unknown MIME type
  │     ├── EmptyContentError          reader returned blank text
  │     ├── ExtractionFailedError      wraps any reader exception
  │     └── NoExtractableContentError  every file in a batch failed
  ├── ModelError
  │     ├── ModelProviderError         raised by generator adapters; carries `retryable`
  │     ├── ModelCallFailedError       retries exhausted or non-retryable failure
  │     ├── ChunkProcessingError       one chunk failed; the whole merge is aborted
  │     └── InvalidModelOutputError    no parseable JSON array in a model response
  ├── MissingStageInputError           required state field absent (earlier stage failed)
  ├── CollaboratorNotConfiguredError   stage needs a collaborator that was not injected
  └── StageContractError               a workflow node wrote a field it does not own

Workflow nodes never let these escape: they are converted into
`current_step` / `errors` entries on the workflow state.
"""

from __future__ import annotations


class StudyBuddyError(Exception):
    """Base class for every error raised by the pipeline core."""


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionError(StudyBuddyError):
    """Base class for text-extraction failures."""


class UnsupportedFormatError(ExtractionError):
    def __init__(self, mime_type: str) -> None:
        super().__init__(f"Unsupported file type: {mime_type}")
        self.mime_type = mime_type


class EmptyContentError(ExtractionError):
    def __init__(self, path: str, kind: str = "file") -> None:
        super().__init__(f"{kind} appears to be empty: {path}")
        self.path = path


class ExtractionFailedError(ExtractionError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Text extraction failed for {path}: {reason}")
        self.path = path


class NoExtractableContentError(ExtractionError):
    """Raised by batch extraction when no file produced any text."""


# ---------------------------------------------------------------------------
# Model calls
# ---------------------------------------------------------------------------

class ModelError(StudyBuddyError):
    """Base class for generative-model failures."""


class ModelProviderError(ModelError):
    """
    A single failed generation attempt, classified at the adapter layer.

    retryable : True for transient failures (rate limit, overload, network).
    status    : HTTP-style status code when the provider exposed one.
    """

    def __init__(
        self,
        message:   str,
        retryable: bool,
        status:    int | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status    = status


class ModelCallFailedError(ModelError):
    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Model call failed after {attempts} attempt(s): {last_error}")
        self.attempts   = attempts
        self.last_error = last_error


class ChunkProcessingError(ModelError):
    def __init__(self, chunk_index: int, total_chunks: int, cause: Exception) -> None:
        super().__init__(
            f"Chunk {chunk_index + 1}/{total_chunks} could not be processed: {cause}"
        )
        self.chunk_index  = chunk_index
        self.total_chunks = total_chunks


class InvalidModelOutputError(ModelError):
    """The model response did not contain the structured payload we asked for."""


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class MissingStageInputError(StudyBuddyError):
    """A stage's required input field is absent, usually because an earlier stage failed."""


class CollaboratorNotConfiguredError(StudyBuddyError):
    def __init__(self, collaborator: str) -> None:
        super().__init__(f"No {collaborator} configured for this workflow")
        self.collaborator = collaborator


class StageContractError(StudyBuddyError):
    def __init__(self, stage: str, keys: set[str]) -> None:
        super().__init__(
            f"stage '{stage}' returned fields it does not own: {', '.join(sorted(keys))}"
        )
        self.stage = stage
        self.keys  = keys
