import os
import re
from typing import Dict, List, Optional

from propsxls.errors import PropertiesFormatError

# Whitespace as understood by java.util.Properties
_WHITESPACE = ' \t\f'
_LINE_BREAK = re.compile(r'\r\n|\r|\n')
_SIMPLE_ESCAPES = {'t': '\t', 'n': '\n', 'r': '\r', 'f': '\f'}
_SPECIAL_ESCAPES = {'\t': '\\t', '\n': '\\n', '\r': '\\r', '\f': '\\f'}


def _has_unescaped_trailing_backslash(s: str) -> bool:
    """Check if a string ends with an odd number of backslashes."""
    if not s.endswith('\\'):
        return False
    # Count trailing backslashes
    count = 0
    i = len(s) - 1
    while i >= 0 and s[i] == '\\':
        count += 1
        i -= 1
    # An odd number of trailing backslashes indicates an unescaped one
    return count % 2 == 1


def _logical_lines(text: str) -> List[tuple]:
    """
    Join continuation lines into logical lines.

    Returns:
        A list of (line_number, logical_line) tuples, with comments and blank
        lines removed. Line numbers are 1-based and point at the first
        natural line of each logical line.
    """
    natural_lines = _LINE_BREAK.split(text)
    result = []
    i = 0
    while i < len(natural_lines):
        line = natural_lines[i].lstrip(_WHITESPACE)
        line_number = i + 1
        i += 1
        if not line or line.startswith(('#', '!')):
            continue

        # Handle multiline values
        while _has_unescaped_trailing_backslash(line):
            line = line[:-1]  # Remove the backslash
            if i >= len(natural_lines):
                break
            line += natural_lines[i].lstrip(_WHITESPACE)
            i += 1
        result.append((line_number, line))
    return result


def _split_key_value(line: str) -> tuple:
    """Split a logical line into its raw (still escaped) key and value."""
    key_end = len(line)
    value_start = len(line)
    has_separator = False
    preceding_backslash = False
    for index, char in enumerate(line):
        if preceding_backslash:
            preceding_backslash = False
            continue
        if char == '\\':
            preceding_backslash = True
        elif char in '=:':
            key_end = index
            value_start = index + 1
            has_separator = True
            break
        elif char in _WHITESPACE:
            key_end = index
            value_start = index + 1
            break

    # Skip whitespace and at most one separator following the key
    while value_start < len(line):
        char = line[value_start]
        if char in _WHITESPACE:
            value_start += 1
        elif char in '=:' and not has_separator:
            has_separator = True
            value_start += 1
        else:
            break
    return line[:key_end], line[value_start:]


def _join_surrogates(text: str) -> str:
    if not any('\ud800' <= char <= '\udfff' for char in text):
        return text
    return text.encode('utf-16', 'surrogatepass').decode('utf-16', 'surrogatepass')


def unescape(raw: str, line_number: Optional[int] = None) -> str:
    """
    Decode the backslash escapes of a .properties key or value.

    Raises:
        PropertiesFormatError: If a \\uXXXX escape is malformed.
    """
    chars = []
    i = 0
    while i < len(raw):
        char = raw[i]
        i += 1
        if char != '\\':
            chars.append(char)
            continue
        if i >= len(raw):
            # A lone trailing backslash is dropped
            break
        char = raw[i]
        i += 1
        if char == 'u':
            hex_digits = raw[i:i + 4]
            if len(hex_digits) != 4 or not re.fullmatch(r'[0-9a-fA-F]{4}', hex_digits):
                raise PropertiesFormatError(f"Malformed \\uxxxx encoding: '\\u{hex_digits}'",
                                            line_number=line_number)
            chars.append(chr(int(hex_digits, 16)))
            i += 4
        else:
            chars.append(_SIMPLE_ESCAPES.get(char, char))
    return _join_surrogates(''.join(chars))


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse the content of a .properties file.

    Args:
        text (str): The file content.

    Returns:
        Dict[str, str]: The decoded key-value pairs in file order. A key that
        appears twice keeps its first position and its last value.

    Raises:
        PropertiesFormatError: If an escape sequence is malformed.
    """
    entries: Dict[str, str] = {}
    for line_number, line in _logical_lines(text):
        raw_key, raw_value = _split_key_value(line)
        key = unescape(raw_key, line_number)
        entries[key] = unescape(raw_value, line_number)
    return entries


def parse_properties_file(file_path: str, encoding: str = 'utf-8') -> Dict[str, str]:
    """
    Parse a .properties file.

    Args:
        file_path (str): The path to the .properties file.
        encoding (str): The text encoding of the file.

    Returns:
        Dict[str, str]: The key-value pairs in file order.

    Raises:
        PropertiesFormatError: If the file cannot be decoded or parsed.
        OSError: If the file cannot be read.
    """
    with open(file_path, 'r', encoding=encoding, newline='') as file:
        try:
            text = file.read()
        except UnicodeDecodeError as decode_exc:
            raise PropertiesFormatError(f"Not a valid {encoding} file: {decode_exc}", path=file_path) from decode_exc
    try:
        return parse_properties(text)
    except PropertiesFormatError as format_exc:
        raise PropertiesFormatError(format_exc.reason, path=file_path,
                                    line_number=format_exc.line_number) from format_exc


def _escape(text: str, is_key: bool, escape_unicode: bool) -> str:
    chars = []
    for index, char in enumerate(text):
        if char == '\\':
            chars.append('\\\\')
        elif char == ' ':
            chars.append('\\ ' if is_key or index == 0 else ' ')
        elif char in _SPECIAL_ESCAPES:
            chars.append(_SPECIAL_ESCAPES[char])
        elif char in '=:#!':
            chars.append('\\' + char)
        elif ord(char) < 0x20 or ord(char) == 0x7f or (escape_unicode and ord(char) > 0x7e):
            # Characters outside the BMP are written as a UTF-16 surrogate pair
            utf16 = char.encode('utf-16-be', 'surrogatepass')
            for offset in range(0, len(utf16), 2):
                chars.append('\\u%04X' % int.from_bytes(utf16[offset:offset + 2], 'big'))
        else:
            chars.append(char)
    return ''.join(chars)


def escape_key(key: str, escape_unicode: bool = True) -> str:
    """Escape a key so that it reads back unchanged."""
    return _escape(key, True, escape_unicode)


def escape_value(value: str, escape_unicode: bool = True) -> str:
    """Escape a value; unlike in keys, only a leading space is escaped."""
    return _escape(value, False, escape_unicode)


def format_properties(entries: Dict[str, str], escape_unicode: bool = True) -> str:
    """
    Render key-value pairs as .properties content.

    Args:
        entries (Dict[str, str]): The pairs to write, in output order.
        escape_unicode (bool): Write non-ASCII characters as \\uXXXX escapes.

    Returns:
        str: One `key=value` line per entry.
    """
    lines = [
        f"{escape_key(key, escape_unicode)}={escape_value(value, escape_unicode)}\n"
        for key, value in entries.items()
    ]
    return ''.join(lines)


def write_properties_file(file_path: str, entries: Dict[str, str], encoding: str = 'utf-8',
                          escape_unicode: bool = True) -> None:
    """Write key-value pairs to a .properties file, creating parent directories."""
    parent_dir = os.path.dirname(file_path)
    if parent_dir:
        os.makedirs(parent_dir, exist_ok=True)
    with open(file_path, 'w', encoding=encoding, newline='\n') as f:
        f.write(format_properties(entries, escape_unicode))
