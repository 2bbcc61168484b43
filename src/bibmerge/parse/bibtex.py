"""BibTeX record-set parser.

Entries: @<entrytype>{citekey, field = {value}, ...} or
@<entrytype>(citekey, field = {value}, ...)
Special entries (@STRING, @PREAMBLE, @COMMENT) are skipped.
Reference: http://www.bibtex.org/Format/

This is the default ``RecordSetParser``. It is deliberately forgiving: it
recovers from malformed entries and reports them as warnings, and only
reports an error when an entry is left unclosed or the file holds no entries
at all.

String macros are not expanded. A field whose value is a macro name or a
``#`` concatenation keeps its first part as literal text and raises a
warning, as does every skipped special entry, since neither survives a
rewrite of the file.
"""

import re
from pathlib import Path

from bibmerge.models import Record, RecordCollection
from bibmerge.parse.base import ParserResult, detect_encoding, normalize_line_endings

ENTRY_LINE_PATTERN = re.compile(r"^[ \t]*@", re.MULTILINE)
ENTRY_START_PATTERN = re.compile(r"@(\w+)\s*([{(])", re.IGNORECASE)
FIELD_NAME_PATTERN = re.compile(r"([\w\-:.]+)\s*=\s*")
WHITESPACE_RUN = re.compile(r"\s+")

ENTRY_CLOSERS = {"{": "}", "(": ")"}
SPECIAL_ENTRY_TYPES = frozenset({"string", "preamble", "comment"})


class BibtexParser:
    """Parse ``.bib`` files into record collections."""

    def parse(self, path: Path) -> ParserResult:
        """Parse a BibTeX file.

        Parameters
        ----------
        path : Path
            Path to the BibTeX file.

        Returns
        -------
        ParserResult
            Records, warnings, and error message (if any).
        """
        try:
            file_bytes = Path(path).read_bytes()
        except OSError as e:
            return ParserResult.from_error(f"Failed to read file: {e}")

        encoding = detect_encoding(file_bytes)
        content = normalize_line_endings(file_bytes.decode(encoding))
        return parse_bibtex_text(content)


def parse_bibtex_text(content: str) -> ParserResult:
    """Parse BibTeX source text.

    Parameters
    ----------
    content : str
        Decoded file content with LF line endings.

    Returns
    -------
    ParserResult
        Records, warnings, and error message (if any).
    """
    warnings: list[str] = []
    errors: list[str] = []
    records: list[Record] = []

    if not content.strip():
        return ParserResult(RecordCollection())

    entries_seen = 0
    pos = 0
    while True:
        line_match = ENTRY_LINE_PATTERN.search(content, pos)
        if line_match is None:
            break

        at_pos = line_match.end() - 1
        line_no = content.count("\n", 0, at_pos) + 1
        header = ENTRY_START_PATTERN.match(content, at_pos)
        if header is None:
            snippet = content[at_pos : content.find("\n", at_pos)][:50]
            warnings.append(f"Line {line_no}: Malformed entry start: {snippet}")
            pos = line_match.end()
            continue

        entries_seen += 1
        entry_type = header.group(1).lower()
        open_pos = header.end() - 1
        close_pos = _find_entry_end(content, open_pos)

        if close_pos == -1:
            errors.append(f"Line {line_no}: Unclosed entry @{entry_type}")
            pos = header.end()
            continue

        pos = close_pos + 1

        if entry_type in SPECIAL_ENTRY_TYPES:
            warnings.append(f"Line {line_no}: Skipping @{entry_type.upper()} entry")
            continue

        body = content[header.end() : close_pos]
        citekey, fields_text = _split_citekey(body)
        fields = _collect_fields(_parse_fields(fields_text), line_no, citekey, warnings)

        if not citekey:
            warnings.append(f"Line {line_no}: Entry @{entry_type} has no citation key")

        records.append(Record(kind=entry_type, fields=fields, citation_key=citekey))

    if entries_seen == 0:
        errors.append("No BibTeX entries found")

    return ParserResult(
        collection=RecordCollection.from_records(records, enforce_unique_keys=False),
        warnings=tuple(warnings),
        error_message="; ".join(errors) if errors else None,
    )


def _find_entry_end(content: str, open_pos: int) -> int:
    closer = ENTRY_CLOSERS[content[open_pos]]
    brace_depth = 0
    in_quotes = False
    escape_next = False

    for i in range(open_pos + 1, len(content)):
        char = content[i]
        if escape_next:
            escape_next = False
            continue

        if char == "\\":
            escape_next = True
            continue

        # Quotes only delimit values outside braced values
        if char == '"' and brace_depth == 0:
            in_quotes = not in_quotes
        elif not in_quotes:
            if char == closer and brace_depth == 0:
                return i
            if char == "{":
                brace_depth += 1
            elif char == "}":
                brace_depth -= 1

    return -1


def _split_citekey(body: str) -> tuple[str, str]:
    comma = body.find(",")
    head = body if comma == -1 else body[:comma]
    if "=" in head:
        return "", body
    if comma == -1:
        return head.strip(), ""
    return head.strip(), body[comma + 1 :]


def _collect_fields(
    parsed: list[tuple[str, str, bool]],
    line_no: int,
    citekey: str,
    warnings: list[str],
) -> dict[str, str]:
    fields: dict[str, str] = {}
    for name, value, literal in parsed:
        if name in fields:
            warnings.append(
                f"Line {line_no}: Duplicate field '{name}' in entry '{citekey}', keeping first"
            )
            continue
        if not literal:
            warnings.append(
                f"Line {line_no}: Field '{name}' in entry '{citekey}' uses a string macro "
                f"or concatenation, kept as literal text '{value}'"
            )
        fields[name] = value
    return fields


def _parse_fields(content: str) -> list[tuple[str, str, bool]]:
    """Return (name, value, literal) triples; literal is False for macros and concatenations."""
    fields: list[tuple[str, str, bool]] = []

    i = 0
    while i < len(content):
        # Skip whitespace and separators
        while i < len(content) and (content[i].isspace() or content[i] == ","):
            i += 1
        if i >= len(content):
            break

        field_match = FIELD_NAME_PATTERN.match(content, i)
        if not field_match:
            i += 1
            continue

        field_name = field_match.group(1).lower()
        i = field_match.end()
        if i >= len(content):
            break

        value, i = _parse_value(content, i)
        literal = content[field_match.end()] in "{\"" or value.isdigit() or not value

        i, concatenated = _skip_concatenation(content, i)
        fields.append(
            (field_name, WHITESPACE_RUN.sub(" ", value).strip(), literal and not concatenated)
        )

    return fields


def _parse_value(content: str, start: int) -> tuple[str, int]:
    if content[start] == "{":
        return _parse_braced_value(content, start)
    if content[start] == '"':
        return _parse_quoted_value(content, start)
    return _parse_bare_value(content, start)


def _skip_concatenation(content: str, pos: int) -> tuple[int, bool]:
    concatenated = False
    while True:
        i = pos
        while i < len(content) and content[i].isspace():
            i += 1
        if i >= len(content) or content[i] != "#":
            return pos, concatenated

        concatenated = True
        i += 1
        while i < len(content) and content[i].isspace():
            i += 1
        if i >= len(content):
            return i, concatenated
        _, pos = _parse_value(content, i)


def _parse_braced_value(content: str, start: int) -> tuple[str, int]:
    brace_depth = 0
    value_chars: list[str] = []
    i = start

    while i < len(content):
        char = content[i]
        if char == "{":
            brace_depth += 1
            if brace_depth > 1:
                value_chars.append(char)
        elif char == "}":
            brace_depth -= 1
            if brace_depth == 0:
                return "".join(value_chars), i + 1
            value_chars.append(char)
        else:
            value_chars.append(char)
        i += 1

    return "".join(value_chars), i


def _parse_quoted_value(content: str, start: int) -> tuple[str, int]:
    i = start + 1  # skip opening quote
    value_chars: list[str] = []
    brace_depth = 0

    while i < len(content):
        char = content[i]
        if char == "{":
            brace_depth += 1
        elif char == "}":
            brace_depth -= 1
        elif char == '"' and brace_depth == 0:
            return "".join(value_chars), i + 1
        value_chars.append(char)
        i += 1

    return "".join(value_chars), i


def _parse_bare_value(content: str, start: int) -> tuple[str, int]:
    value_chars: list[str] = []
    i = start

    while i < len(content) and content[i] not in ",\n}":
        if content[i] == "#":
            break
        value_chars.append(content[i])
        i += 1

    return "".join(value_chars).strip(), i
