# proxyutils/scanner.py
"""
Byte-level scanning over raw HTTP responses.

Everything here works on bytes, never on decoded text: the header boundary
is located by searching for CRLF-CRLF, and censorship replaces literal byte
sequences matched case-insensitively (ASCII case folding only).
"""

from .protocol import HEADER_TERMINATOR

# Placeholder written over every censored word
CENSOR_REPLACEMENT = b'---'


def find_header_boundary(data):
    """
    Locate the end of the header block.

    Args:
        data: Raw response bytes

    Returns:
        int: Index of the last header byte, i.e. the byte just before the
        first CRLF-CRLF. If there is no CRLF-CRLF the whole buffer is
        treated as header and len(data) - 1 is returned (0 for an empty
        buffer).
    """
    index = data.find(HEADER_TERMINATOR)
    if index == -1:
        return max(0, len(data) - 1)
    return index - 1


def replace_all(data, start, needle, replacement=CENSOR_REPLACEMENT):
    """
    Replace every case-insensitive occurrence of needle at or after start.

    Matches never overlap; scanning resumes right after each replaced match,
    so a replacement can never be matched again. Bytes before start are
    returned untouched.

    Args:
        data: Raw bytes to scan
        start: Offset where matching begins
        needle: Word to censor (str is encoded as UTF-8)
        replacement: Bytes written in place of each match

    Returns:
        bytes: The censored copy of data
    """
    if isinstance(needle, str):
        needle = needle.encode('utf-8')
    if isinstance(replacement, str):
        replacement = replacement.encode('utf-8')
    data = bytes(data)
    if not needle:
        return data

    # bytes.lower() only folds ASCII, so offsets line up with data
    folded = data.lower()
    folded_needle = needle.lower()

    start = max(start, 0)
    result = bytearray(data[:start])
    position = start
    while True:
        match = folded.find(folded_needle, position)
        if match == -1:
            break
        result += data[position:match]
        result += replacement
        position = match + len(needle)
    result += data[position:]
    return bytes(result)


def censor_response(data, words, replacement=CENSOR_REPLACEMENT):
    """
    Censor the body of a buffered response.

    Args:
        data: Complete response bytes (headers + body)
        words: Ordered iterable of words to censor
        replacement: Bytes written in place of each match

    Returns:
        bytes: Response with headers untouched and every word in the body
        replaced
    """
    body_start = find_header_boundary(data) + 1 + len(HEADER_TERMINATOR)
    censored = bytes(data)
    for word in words:
        censored = replace_all(censored, body_start, word, replacement)
    return censored
