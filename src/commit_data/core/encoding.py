"""Two-step decoding of git output whose real encoding is only known later.

Git prints the author, committer and message in whatever encoding the commit
was written with, and the name of that encoding is itself part of the output.
The raw bytes are therefore first captured with a lossless codec, which maps
every byte to exactly one code point, and re-interpreted once the declared
encoding has been read from the record.
"""

import codecs
import logging
from typing import Optional

from commit_data.core.config import CommitDataConfig
from commit_data.core.errors import MalformedRecordError

logger = logging.getLogger(__name__)

LOSSLESS_ENCODING = "latin-1"
DEFAULT_ENCODING = "utf-8"


def decode_lossless(data: bytes) -> str:
    """Decode raw git output without losing any byte."""
    return data.decode(LOSSLESS_ENCODING)


def reencode_from_lossless(
    text: str, encoding: Optional[str] = None, errors: str = "replace"
) -> str:
    """Re-interpret a lossless string in ``encoding`` (default: utf-8)."""
    if not text:
        return text
    try:
        raw = text.encode(LOSSLESS_ENCODING)
    except UnicodeEncodeError:
        # Code points above U+00FF cannot come from a lossless capture
        logger.debug("Text was not captured losslessly, leaving it as is")
        return text
    encoding = encoding or DEFAULT_ENCODING
    try:
        return raw.decode(encoding, errors)
    except UnicodeDecodeError as e:
        raise MalformedRecordError(
            f"Commit data is not valid {encoding}: {e.reason}",
            {"encoding": encoding, "position": e.start},
        ) from e


class EncodingReconciler:
    """Re-decodes lossless record text using the default or a declared encoding."""

    def __init__(self, default_encoding: str = DEFAULT_ENCODING, errors: str = "replace"):
        self.default_encoding = default_encoding
        self.errors = errors

    @classmethod
    def from_config(cls, config: CommitDataConfig) -> "EncodingReconciler":
        return cls(config.default_encoding, config.decode_errors)

    def reencode_string(self, text: str) -> str:
        """Re-decode text that carries no declared encoding (names, emails)."""
        return reencode_from_lossless(text, self.default_encoding, self.errors)

    def resolve_encoding(self, declared_encoding: Optional[str]) -> str:
        """Map the encoding named in a record to a usable codec name.

        An empty name means the commit was written in the default encoding.
        """
        if not declared_encoding:
            return self.default_encoding
        try:
            codecs.lookup(declared_encoding)
        except LookupError:
            logger.warning(
                "Unknown commit encoding %r, using %s",
                declared_encoding,
                self.default_encoding,
            )
            return self.default_encoding
        return declared_encoding

    def reencode_commit_message(self, message: str, declared_encoding: Optional[str]) -> str:
        """Re-decode a commit message; git does not reencode it for --format output."""
        encoding = self.resolve_encoding(declared_encoding)
        return reencode_from_lossless(message, encoding, self.errors)
