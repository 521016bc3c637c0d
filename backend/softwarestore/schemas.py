"""Pydantic request/response schemas used by the API and the pipeline.

Schemas keep API input/output shapes stable and carry the transient
values passed between submission pipeline steps.
"""

from enum import Enum
from pydantic import BaseModel
from typing import Optional


class ProgramForm(BaseModel):
    """Text fields of the program submission form."""
    name: str = ''
    description: str = ''
    category_id: Optional[int] = None


class ProgramTextDetails(BaseModel):
    """Program details parsed from the info file inside an archive."""
    name: Optional[str] = None
    description: Optional[str] = None
    icon128: Optional[str] = None
    icon512: Optional[str] = None


class ProgramBasicInfo(BaseModel):
    """Listing projection of a program joined with its category name."""
    id: int
    name: str
    description: str
    img128: Optional[str] = None
    img512: Optional[str] = None
    category_name: str
    downloads: int


class CategoryOut(BaseModel):
    id: int
    name: str


class SubmissionState(str, Enum):
    RECEIVED = 'received'
    EXTRACTED = 'extracted'
    FILES_VALIDATED = 'files_validated'
    METADATA_PARSED = 'metadata_parsed'
    METADATA_VALIDATED = 'metadata_validated'
    PERSISTED = 'persisted'
    REJECTED = 'rejected'
    FAILED = 'failed'


class SubmissionResult(BaseModel):
    """Terminal outcome of a submission, rendered by the HTTP layer.

    `message_key` names an entry of `messages.MESSAGES`; `program_id` is
    only set when the program was persisted.
    """
    state: SubmissionState
    message_key: str
    program_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.state == SubmissionState.PERSISTED
