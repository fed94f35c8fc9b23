import struct

from .errors import TruncatedBuffer

DEBUG = False

def log(message):
    if DEBUG:
        print(f"[source_mdl] {message}")

def check_bounds(buf, off, size, what="record"):
    if off < 0 or size < 0 or off + size > len(buf):
        raise TruncatedBuffer(
            f"{what} at offset {off} ({size} bytes) lies outside buffer of {len(buf)} bytes"
        )

def read_struct(fmt, buf, off, what="record"):
    check_bounds(buf, off, struct.calcsize(fmt), what)
    return struct.unpack_from(fmt, buf, off)

def read_struct_array(fmt, buf, off, count, what="record"):
    size = struct.calcsize(fmt)
    check_bounds(buf, off, size * count, f"{count} x {what}")
    return list(struct.iter_unpack(fmt, buf[off:off + size * count]))

def read_int32_le(buf, off):
    return read_struct("<i", buf, off, "int32")[0]

def strip_nul_padding(raw: bytes) -> bytes:
    """Bytes of a NUL-padded fixed-width field up to the first NUL."""
    end = raw.find(b"\x00")
    if end == -1:
        return raw
    return raw[:end]
