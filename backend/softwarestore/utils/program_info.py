"""Parser for the program info text file shipped inside archives.

The file holds one `key=value` (or `key: value`) pair per line::

    name=Foo
    description=Does foo things
    icon128=a.png
    icon512=b.png

Blank lines and lines starting with `#` are ignored and keys are
case-insensitive. A missing file and a malformed file raise different
exceptions so callers can tell them apart.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..errors import MetadataMalformed, MetadataMissing
from ..schemas import ProgramTextDetails

_LOGGER = logging.getLogger("softwarestore.files")

KEY_ALIASES = {
    'name': 'name',
    'description': 'description',
    'icon128': 'icon128',
    'img128': 'icon128',
    'pic128': 'icon128',
    'icon512': 'icon512',
    'img512': 'icon512',
    'pic512': 'icon512',
}
_DELIMITER = re.compile(r'[=:]')


def parse_program_info_text(text: str) -> ProgramTextDetails:
    """Parse the info file contents into `ProgramTextDetails`.

    Raises `MetadataMalformed` for a line without a delimiter, an empty
    key or a key given twice. Unknown keys are skipped.
    """
    values = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        match = _DELIMITER.search(line)
        if not match:
            raise MetadataMalformed(f"line {lineno}: expected 'key=value'")
        key = line[:match.start()].strip().lower()
        value = line[match.end():].strip()
        if not key:
            raise MetadataMalformed(f"line {lineno}: empty key")
        field = KEY_ALIASES.get(key)
        if field is None:
            _LOGGER.debug("Ignoring unknown program info key %r on line %d", key, lineno)
            continue
        if field in values:
            raise MetadataMalformed(f"line {lineno}: duplicate key {key!r}")
        values[field] = value or None
    return ProgramTextDetails(**values)


def parse_program_info(path: Optional[Path]) -> ProgramTextDetails:
    """Read and parse the info file at `path`.

    `path` is the entry looked up in the extracted file set, so `None`
    means the archive had no info file and raises `MetadataMissing`.
    """
    if path is None or not Path(path).is_file():
        raise MetadataMissing("program info file is absent from the archive")
    try:
        text = Path(path).read_bytes().decode('utf-8-sig')
    except UnicodeDecodeError as exc:
        raise MetadataMalformed(f"program info file is not UTF-8 text: {exc}") from exc
    return parse_program_info_text(text)
