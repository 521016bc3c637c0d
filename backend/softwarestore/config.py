"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    MAX_UPLOAD_BYTES: int
    TEMP_UPLOAD_DIR: Path
    STORAGE_DIR: Path
    PROGRAM_INFO_FILE: str
    DEFAULT_CATEGORIES: list
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'softwarestore.db'}")
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10 MB default
        self.TEMP_UPLOAD_DIR = Path(os.getenv("TEMP_UPLOAD_DIR", str(BASE / "data" / "tmp_uploads"))).expanduser()
        self.STORAGE_DIR = Path(os.getenv("STORAGE_DIR", str(BASE / "data" / "programs"))).expanduser()
        self.PROGRAM_INFO_FILE = os.getenv("PROGRAM_INFO_FILE", "info.txt").strip()
        raw_categories = os.getenv("DEFAULT_CATEGORIES", "Games,Multimedia,Productivity,Utilities")
        self.DEFAULT_CATEGORIES = [c.strip() for c in raw_categories.split(",") if c.strip()]
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self._validate()

    def _validate(self):
        if self.MAX_UPLOAD_BYTES <= 0:
            raise RuntimeError("MAX_UPLOAD_BYTES must be a positive number of bytes")
        if not self.PROGRAM_INFO_FILE:
            raise RuntimeError("PROGRAM_INFO_FILE must name the metadata entry inside program archives")


settings = Settings()
