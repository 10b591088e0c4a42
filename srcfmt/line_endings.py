from __future__ import annotations


LF = b"\n"
CRLF = b"\r\n"

_TEXT_CHARS = bytes({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x7F)) | set(range(0x80, 0x100)))
_SAMPLE_SIZE = 4096
_NON_PRINTABLE_RATIO = 0.30


def is_binary(data: bytes) -> bool:
    if not data:
        return False
    if b"\x00" in data:
        return True
    sample = data[:_SAMPLE_SIZE]
    non_printables = sum(1 for byte in sample if byte not in _TEXT_CHARS)
    return non_printables / len(sample) > _NON_PRINTABLE_RATIO


def dos_to_unix(data: bytes) -> bytes:
    # lone CR is left alone, same as dos2unix without -c mac
    return data.replace(CRLF, LF)
