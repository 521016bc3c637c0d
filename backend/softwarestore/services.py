"""Business logic services used by HTTP controllers.

`CatalogStore` is the persistence boundary of the catalog and
`SubmissionService` runs the program submission pipeline: store the
upload, extract it, validate files and info file, transfer the files to
durable storage and persist the new program. Temporary files are removed
whatever the outcome.
"""

import json
import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional
from sqlmodel import Session
from . import models, repositories
from .config import settings
from .errors import ContentRejection, IOFailure, NotFound
from .messages import ERROR_EMPTY_FILES, ERROR_INFO_FORMAT, ERROR_PROCESSING_ZIP, MSG_PROGRAM_ADDED
from .schemas import ProgramBasicInfo, ProgramForm, SubmissionResult, SubmissionState
from .utils.file_transfer import FileTransfer, LocalFileTransfer
from .utils.program_info import parse_program_info
from .utils.zip_handler import extract_zip_file, remove_files, store_upload
from .validators import has_empty_files, is_valid_program_info

logger = logging.getLogger("softwarestore.submission")


class CatalogStore:
    """Create, remove and look up catalog entries."""
    def __init__(self, session: Session):
        self.session = session
        self.category_repo = repositories.CategoryRepository(session)
        self.program_repo = repositories.ProgramRepository(session)

    def add_program(self, program: models.Program) -> models.Program:
        """Persist `program`; raises `PersistenceFailure` if the database refuses it."""
        return self.program_repo.create(program)

    def remove_program(self, program_id: int) -> None:
        """Delete a program. Removing an unknown id is a no-op."""
        if not self.program_repo.delete(program_id):
            logger.info("Program %s not found, nothing to remove", program_id)

    def get_program(self, program_id: int) -> models.Program:
        program = self.program_repo.get(program_id)
        if program is None:
            raise NotFound('program', program_id)
        return program

    def get_category_by_id(self, category_id: int) -> models.Category:
        category = self.category_repo.get(category_id)
        if category is None:
            raise NotFound('category', category_id)
        return category

    def category_exists(self, category_id: int) -> bool:
        return self.category_repo.get(category_id) is not None

    def get_all_categories(self) -> List[models.Category]:
        return self.category_repo.list_all()

    def add_category(self, name: str) -> models.Category:
        return self.category_repo.create(models.Category(name=name))

    def get_programs_basic_info(self, category_id: Optional[int] = None) -> List[ProgramBasicInfo]:
        """Listing rows for the catalog pages, optionally for one category."""
        return [
            ProgramBasicInfo(
                id=p.id,
                name=p.name,
                description=p.description,
                img128=p.img128,
                img512=p.img512,
                category_name=c.name,
                downloads=p.downloads,
            )
            for p, c in self.program_repo.list_with_category(category_id)
        ]


class SubmissionService:
    """Turn an uploaded program archive into a catalog entry.

    Collaborators are passed in explicitly; anything left out falls back
    to the configured defaults (local durable storage, settings paths).
    """
    def __init__(
        self,
        session: Session,
        store: Optional[CatalogStore] = None,
        transfer: Optional[FileTransfer] = None,
        temp_upload_dir: Optional[Path] = None,
        program_info_file: Optional[str] = None,
    ):
        self.session = session
        self.store = store or CatalogStore(session)
        self.transfer = transfer or LocalFileTransfer(settings.STORAGE_DIR)
        self.temp_upload_dir = Path(temp_upload_dir or settings.TEMP_UPLOAD_DIR)
        self.program_info_file = program_info_file or settings.PROGRAM_INFO_FILE

    def submit(self, form: ProgramForm, upload) -> SubmissionResult:
        """Run the pipeline for a validated form and its uploaded archive.

        Content problems end in `REJECTED`, I/O problems in `FAILED`; both
        carry the message key to show the user. `PersistenceFailure` and
        `NotFound` propagate. The stored upload and the extraction
        directory are removed on every exit path.
        """
        started = time.perf_counter()
        state = SubmissionState.RECEIVED
        work_dir = self.temp_upload_dir / uuid.uuid4().hex
        uploaded: Optional[Path] = None
        extract_path: Optional[Path] = None
        try:
            uploaded = store_upload(upload, work_dir)
            extract_path = self._extract_path(uploaded)
            files = extract_zip_file(uploaded, extract_path)
            state = SubmissionState.EXTRACTED

            if has_empty_files(files):
                logger.debug("Some extracted files are empty")
                return self._finish(state, SubmissionState.REJECTED, ERROR_EMPTY_FILES, started)
            state = SubmissionState.FILES_VALIDATED

            try:
                details = parse_program_info(files.get(self.program_info_file))
            except ContentRejection as exc:
                logger.debug("Program info file rejected: %s", exc)
                return self._finish(state, SubmissionState.REJECTED, ERROR_INFO_FORMAT, started)
            state = SubmissionState.METADATA_PARSED

            if not is_valid_program_info(details):
                logger.debug("Program info file is missing required fields")
                return self._finish(state, SubmissionState.REJECTED, ERROR_INFO_FORMAT, started)
            state = SubmissionState.METADATA_VALIDATED

            category = self.store.get_category_by_id(form.category_id)
            self.transfer.upload_files(files, form.name.strip())

            stats = models.Statistics.initial()
            program = models.Program(
                name=form.name.strip(),
                description=form.description.strip(),
                img128=details.icon128,
                img512=details.icon512,
                category_id=category.id,
                time_uploaded=stats.time_uploaded,
                downloads=stats.downloads,
            )
            program = self.store.add_program(program)
            return self._finish(state, SubmissionState.PERSISTED, MSG_PROGRAM_ADDED, started, program.id)
        except (IOFailure, OSError) as exc:
            logger.error("Error during processing zip file: %s", exc)
            return self._finish(state, SubmissionState.FAILED, ERROR_PROCESSING_ZIP, started)
        finally:
            logger.debug("Attempting to remove temporary files")
            remove_files(uploaded, extract_path, work_dir)

    @staticmethod
    def _extract_path(uploaded: Path) -> Path:
        """Sibling directory named after the archive without its extension."""
        target = uploaded.with_suffix('')
        if target == uploaded:
            target = uploaded.with_name(uploaded.name + '_files')
        return target

    def _finish(self, reached, state, message_key, started, program_id=None) -> SubmissionResult:
        logger.info(
            "submission_done %s",
            json.dumps(
                {
                    "state": state.value,
                    "reached": reached.value,
                    "message_key": message_key,
                    "program_id": program_id,
                    "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
                },
                ensure_ascii=True,
            ),
        )
        return SubmissionResult(state=state, message_key=message_key, program_id=program_id)
