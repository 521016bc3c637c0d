"""User-facing message texts keyed by the message keys used in results."""

MSG_PROGRAM_ADDED = "msg.program.added"
ERROR_EMPTY_FILES = "error.contains.empty.files"
ERROR_INFO_FORMAT = "error.zip.txt.file.format"
ERROR_PROCESSING_ZIP = "error.processing.zip"

MESSAGES = {
    MSG_PROGRAM_ADDED: "Program was added to the catalog.",
    ERROR_EMPTY_FILES: "The archive contains empty files.",
    ERROR_INFO_FORMAT: "The program info file is missing or has a wrong format.",
    ERROR_PROCESSING_ZIP: "The archive could not be processed.",
    "error.name.required": "Program name is required.",
    "error.name.too.long": "Program name is too long.",
    "error.description.required": "Program description is required.",
    "error.description.too.long": "Program description is too long.",
    "error.category.required": "Choose a category.",
    "error.category.not.found": "The chosen category does not exist.",
    "error.file.required": "Choose a zip file to upload.",
    "error.file.not.zip": "Only .zip archives are accepted.",
    "error.file.invalid.name": "The file name is invalid.",
    "error.file.empty": "The uploaded file is empty.",
    "error.file.too.large": "The uploaded file is too large.",
}


def get_message(key: str) -> str:
    """Return the text for `key`, or the key itself when unknown."""
    return MESSAGES.get(key, key)
