"""Bounded full-text search inside a single stored file.

The file is read with aiofiles in large text chunks that are split into lines
here, so a thread-pool round trip covers many lines and memory use is bounded
by the chunk size plus the scan window, never by the file size. Very long
physical lines are matched on their first max_scan_length characters and the
remainder is skipped.

When nothing matches, the result is a single sentinel match with line number
-1 so callers always have something to render.
"""

import logging
import re
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from dataclasses import dataclass

import aiofiles

from fileshelf.core.paths import PathResolver
from fileshelf.core.types import StoredPath
from fileshelf.errors import (
    InvalidSearchTerm,
    NotAFile,
    NotFound,
    SearchCancelled,
    TermTooLong,
)

logger = logging.getLogger(__name__)

SENTINEL_LINE = -1
NO_MATCHES_MESSAGE = "No matches found."
READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class SearchMatch:
    """A matching line, or a sentinel message when line_number is -1."""

    line_number: int
    content: str

    @property
    def is_sentinel(self) -> bool:
        return self.line_number == SENTINEL_LINE

    def to_dict(self) -> dict[str, int | str]:
        return {"lineNumber": self.line_number, "content": self.content}


def build_matcher(term: str, *, case_sensitive: bool, whole_word: bool) -> Callable[[str], bool]:
    """Build a line predicate for the given options.

    Whole-word matching requires a non-alphanumeric character or the string
    edge on both sides of the term. Case-insensitive matching uses casefold().
    """
    needle = term if case_sensitive else term.casefold()

    if whole_word:
        pattern = re.compile(rf"(?<![^\W_]){re.escape(needle)}(?![^\W_])")
        if case_sensitive:
            return lambda line: pattern.search(line) is not None
        return lambda line: pattern.search(line.casefold()) is not None

    if case_sensitive:
        return lambda line: needle in line
    return lambda line: needle in line.casefold()


class SearchEngine:
    """Searches stored files for a term."""

    def __init__(
        self,
        resolver: PathResolver,
        *,
        max_term_length: int = 1000,
        max_results: int = 1000,
        max_line_length: int = 300,
        max_scan_length: int = 65536,
        read_chunk_size: int = READ_CHUNK_SIZE,
    ) -> None:
        """Initialize search engine.

        Args:
            resolver: Resolver for the storage root
            max_term_length: Longest accepted search term
            max_results: Matches returned before the scan stops
            max_line_length: Returned lines are truncated to this many characters
            max_scan_length: Characters of a physical line that are examined
            read_chunk_size: Characters fetched from disk per read
        """
        self._resolver = resolver
        self._max_term_length = max_term_length
        self._max_results = max_results
        self._max_line_length = max_line_length
        self._max_scan_length = max_scan_length
        self._read_chunk_size = read_chunk_size

    def validate_term(self, term: str) -> None:
        """Check a search term.

        Raises:
            InvalidSearchTerm: If the term is empty
            TermTooLong: If the term exceeds max_term_length characters
        """
        if not term:
            raise InvalidSearchTerm("Missing search term")
        if len(term) > self._max_term_length:
            raise TermTooLong(
                f"Search term too long (maximum {self._max_term_length} characters)"
            )

    async def search(
        self,
        path: StoredPath,
        term: str,
        *,
        case_sensitive: bool = False,
        whole_word: bool = False,
        cancelled: Callable[[], bool] | None = None,
    ) -> list[SearchMatch]:
        """Search a file and collect matches in file order.

        Returns:
            Matching lines, plus a trailing sentinel when the result cap was
            hit, or exactly one sentinel when nothing matched

        Raises:
            InvalidSearchTerm, TermTooLong: On bad terms
            NotFound: If the path does not exist
            NotAFile: If the path is a directory
            SearchCancelled: If cancelled() returned True mid-scan
        """
        results: list[SearchMatch] = []
        matches = self.iter_matches(
            path,
            term,
            case_sensitive=case_sensitive,
            whole_word=whole_word,
            cancelled=cancelled,
        )
        async with aclosing(matches):
            async for match in matches:
                results.append(match)

                if len(results) >= self._max_results:
                    results.append(
                        SearchMatch(
                            SENTINEL_LINE,
                            f"Search results limited to {self._max_results} matches.",
                        )
                    )
                    break

        if not results:
            results.append(SearchMatch(SENTINEL_LINE, NO_MATCHES_MESSAGE))

        logger.debug(f"Search for {term!r} in {path}: {len(results)} result(s)")
        return results

    async def iter_matches(
        self,
        path: StoredPath,
        term: str,
        *,
        case_sensitive: bool = False,
        whole_word: bool = False,
        cancelled: Callable[[], bool] | None = None,
    ) -> AsyncIterator[SearchMatch]:
        """Lazily yield matching lines. Restartable only by calling again."""
        self.validate_term(term)
        file_path = self._resolver.to_filesystem(path)
        if not file_path.exists():
            raise NotFound(f"File not found: {path}")
        if file_path.is_dir():
            raise NotAFile(f"Not a file: {path}")

        matches = build_matcher(term, case_sensitive=case_sensitive, whole_word=whole_word)

        async with aiofiles.open(file_path, encoding="utf-8", errors="replace") as f:
            lines = self._iter_lines(f)
            async with aclosing(lines):
                line_number = 0
                async for line in lines:
                    if cancelled is not None and cancelled():
                        logger.debug(f"Search in {path} cancelled at line {line_number}")
                        raise SearchCancelled(str(path))
                    line_number += 1

                    if matches(line):
                        yield SearchMatch(line_number, self._truncate(line))

    async def _iter_lines(self, f) -> AsyncIterator[str]:
        """Yield physical lines without terminators.

        Universal newline mode has already turned line endings into "\\n".
        Characters past max_scan_length are dropped while reading.
        """
        pending: list[str] = []
        pending_length = 0
        while chunk := await f.read(self._read_chunk_size):
            start = 0
            while (end := chunk.find("\n", start)) != -1:
                pending_length = self._keep(pending, pending_length, chunk[start:end])
                yield "".join(pending)
                pending.clear()
                pending_length = 0
                start = end + 1
            pending_length = self._keep(pending, pending_length, chunk[start:])

        if pending_length:
            yield "".join(pending)

    def _keep(self, pending: list[str], pending_length: int, piece: str) -> int:
        """Append as much of piece as fits in the scan window."""
        room = self._max_scan_length - pending_length
        if room > 0 and piece:
            pending.append(piece[:room])
            pending_length += min(room, len(piece))
        return pending_length

    def _truncate(self, line: str) -> str:
        if len(line) > self._max_line_length:
            return line[: self._max_line_length] + "..."
        return line
