from __future__ import annotations

import re

LINE_SPLIT_RE = re.compile(r"\r?\n")
BOM = "\ufeff"


def split_record(line: str, delimiter: str = ",", quote: str = '"') -> list[str]:
    """Split one delimited line, honouring quoted fields and doubled quotes."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == quote:
            if in_quotes and index + 1 < length and line[index + 1] == quote:
                current.append(quote)
                index += 2
                continue
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    fields.append("".join(current))
    return fields


def parse_delimited(text: str, delimiter: str = ",", quote: str = '"') -> list[list[str]]:
    """Parse delimited text into records.

    Returns an empty list unless there is a header plus at least one data line.
    Blank lines are skipped wherever they occur.
    """
    if text.startswith(BOM):
        text = text[len(BOM) :]
    lines = [line for line in LINE_SPLIT_RE.split(text) if line.strip()]
    if len(lines) < 2:
        return []
    return [split_record(line, delimiter=delimiter, quote=quote) for line in lines]
