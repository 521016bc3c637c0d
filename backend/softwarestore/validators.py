"""Validation rules for program submissions.

`validate_program_form` runs before the pipeline and produces inline
form errors. `has_empty_files` and `is_valid_program_info` run inside
the pipeline on the extracted archive and the parsed info file.
"""

from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

from .errors import ValidationFailure
from .schemas import ProgramForm, ProgramTextDetails

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 2000
MAX_FILENAME_LENGTH = 200


def has_empty_files(files: Mapping[str, Path]) -> bool:
    """Return True if any extracted file (directories excluded) has zero bytes."""
    for path in files.values():
        if path.is_file() and path.stat().st_size == 0:
            return True
    return False


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def is_valid_program_info(details: ProgramTextDetails) -> bool:
    """Name and description are required; icons are optional."""
    return not _blank(details.name) and not _blank(details.description)


def validate_program_form(
    form: ProgramForm,
    filename: Optional[str],
    size: int,
    max_bytes: int,
    category_exists: Callable[[int], bool],
) -> Dict[str, str]:
    """Return a field -> message key map; an empty map means the form is valid."""
    errors: Dict[str, str] = {}
    if _blank(form.name):
        errors['name'] = 'error.name.required'
    elif len(form.name.strip()) > MAX_NAME_LENGTH:
        errors['name'] = 'error.name.too.long'
    if _blank(form.description):
        errors['description'] = 'error.description.required'
    elif len(form.description.strip()) > MAX_DESCRIPTION_LENGTH:
        errors['description'] = 'error.description.too.long'
    if form.category_id is None:
        errors['categoryId'] = 'error.category.required'
    elif not category_exists(form.category_id):
        errors['categoryId'] = 'error.category.not.found'

    if not filename:
        errors['file'] = 'error.file.required'
    elif len(filename) > MAX_FILENAME_LENGTH or '/' in filename or '\\' in filename:
        errors['file'] = 'error.file.invalid.name'
    elif not filename.lower().endswith('.zip'):
        errors['file'] = 'error.file.not.zip'
    elif size == 0:
        errors['file'] = 'error.file.empty'
    elif size > max_bytes:
        errors['file'] = 'error.file.too.large'
    return errors


def ensure_valid_program_form(
    form: ProgramForm,
    filename: Optional[str],
    size: int,
    max_bytes: int,
    category_exists: Callable[[int], bool],
) -> None:
    """Raise `ValidationFailure` carrying the field errors of an invalid form."""
    errors = validate_program_form(form, filename, size, max_bytes, category_exists)
    if errors:
        raise ValidationFailure(errors)
