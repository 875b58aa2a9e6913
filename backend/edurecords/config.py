"""Application settings and validation."""

import os


class Settings:
    ENV: str
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    JSON_INDENT: int
    MAX_CONTENTS_BYTES: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.JSON_INDENT = int(os.getenv("JSON_INDENT", "2"))
        self.MAX_CONTENTS_BYTES = int(os.getenv("MAX_CONTENTS_BYTES", str(1024 * 1024)))  # 1 MB default
        self._validate()

    def _validate(self):
        if self.JSON_INDENT < 0:
            raise RuntimeError("JSON_INDENT must be zero or a positive number of spaces")
        if self.MAX_CONTENTS_BYTES <= 0:
            raise RuntimeError("MAX_CONTENTS_BYTES must be positive")
        if self.ENV != "dev" and self.ALLOW_DEV_CORS:
            raise RuntimeError("ALLOW_DEV_CORS must be disabled in non-dev environments")


settings = Settings()
