"""Hex + ASCII rendering of byte buffers."""

BYTES_PER_ROW = 16
HEXDIGITS = "0123456789abcdef"


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def format_row(chunk: bytes) -> str:
    """Render up to 16 bytes as one 67-column row.

    Layout: a leading space, sixteen `` xx`` hex columns, two spaces, then
    sixteen ASCII columns. Missing bytes are blank in both halves.
    """
    hex_part = "".join(
        f" {HEXDIGITS[b >> 4]}{HEXDIGITS[b & 0xF]}" for b in chunk
    ).ljust(BYTES_PER_ROW * 3)
    ascii_part = "".join(_printable(b) for b in chunk).ljust(BYTES_PER_ROW)
    return f" {hex_part}  {ascii_part}"


def hexdump_lines(data: bytes | bytearray | memoryview) -> list[str]:
    data = bytes(data)
    return [
        format_row(data[offset : offset + BYTES_PER_ROW])
        for offset in range(0, len(data), BYTES_PER_ROW)
    ]
