"""
Opaque record identifier value type.

Only the store boundary parses and formats identifiers; everything above
it handles the plain string form.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass

from db.repositories.errors import InvalidRecordIdError

RECORD_ID_LENGTH = 24
_RECORD_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


@dataclass(frozen=True)
class RecordId:
    """
    24 lowercase hex characters.
    """

    value: str

    @classmethod
    def parse(cls, raw: object) -> RecordId:
        if not isinstance(raw, str):
            raise InvalidRecordIdError(raw)
        normalized = raw.strip().lower()
        if not _RECORD_ID_PATTERN.match(normalized):
            raise InvalidRecordIdError(raw)
        return cls(normalized)

    @classmethod
    def generate(cls) -> RecordId:
        return cls(secrets.token_hex(RECORD_ID_LENGTH // 2))

    def __str__(self) -> str:
        return self.value


def generate_record_id() -> str:
    return str(RecordId.generate())
