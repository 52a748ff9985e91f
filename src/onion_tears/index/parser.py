"""Tree-sitter front-end: language detection and source parsing.

Every analysis in onion-tears runs over a :class:`SourceTree`, a parsed
snapshot of one file.  Nodes are plain tree-sitter nodes; the tree only
adds text slicing and 1-based line/column positions on top of them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter_language_pack import get_parser

from onion_tears.exit_codes import UnsupportedLanguageError

log = logging.getLogger(__name__)

EXTENSION_MAP: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
}

# Language name -> tree-sitter grammar name (identity for all current entries)
GRAMMAR_ALIASES: dict[str, str] = {
    "typescript": "typescript",
    "tsx": "tsx",
    "javascript": "javascript",
}

SUPPORTED_LANGUAGES = frozenset(GRAMMAR_ALIASES)


def detect_language(path: str) -> str | None:
    """Determine the language for a file based on its extension.

    Declaration files (``.d.ts``) carry no function bodies and map to None.
    """
    name = os.path.basename(path).lower()
    if name.endswith(".d.ts"):
        return None
    _, ext = os.path.splitext(name)
    return EXTENSION_MAP.get(ext)


def _parser_for(language: str):
    # A fresh parser per call keeps parse_source safe to run from worker threads.
    grammar = GRAMMAR_ALIASES.get(language, language)
    return get_parser(grammar)


@dataclass(frozen=True)
class SourceTree:
    """A parsed, read-only snapshot of one source file."""

    path: str
    language: str
    source: bytes = field(repr=False)
    tree: object = field(repr=False, compare=False)

    @property
    def root(self):
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return bool(self.root.has_error)

    def text(self, node) -> str:
        """Render the source text of *node*."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def position(self, node) -> tuple[int, int]:
        """Return the 1-based (line, column) of the start of *node*.

        tree-sitter columns are byte offsets; the column returned here counts
        characters so that non-ASCII lines report editor-friendly positions.
        """
        row, byte_col = node.start_point[0], node.start_point[1]
        line_start = node.start_byte - byte_col
        prefix = self.source[line_start : node.start_byte].decode("utf-8", errors="replace")
        return row + 1, len(prefix) + 1


def parse_source(source_text: str | bytes, file_path: str, language: str | None = None) -> SourceTree:
    """Parse *source_text* as the language implied by *file_path*.

    Raises:
        UnsupportedLanguageError: no language given and none detectable.
    """
    lang = language or detect_language(file_path)
    if lang is None or lang not in SUPPORTED_LANGUAGES:
        raise UnsupportedLanguageError(file_path)

    source = source_text.encode("utf-8") if isinstance(source_text, str) else source_text
    tree = _parser_for(lang).parse(source)
    if tree.root_node.has_error:
        log.debug("Parse errors in %s; analysing the recovered tree", file_path)
    return SourceTree(path=file_path, language=lang, source=source, tree=tree)


def read_source(path: str | Path) -> bytes:
    """Read a file as UTF-8 bytes, replacing undecodable sequences."""
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return text.encode("utf-8")


def parse_file(path: str | Path, language: str | None = None, display_path: str | None = None) -> SourceTree:
    """Read and parse a file from disk.

    *display_path* is recorded as the tree's path (e.g. a project-relative
    path); it defaults to *path* itself.
    """
    path_str = str(path)
    lang = language or detect_language(path_str)
    if lang is None:
        raise UnsupportedLanguageError(path_str)
    return parse_source(read_source(path_str), display_path or path_str, lang)
