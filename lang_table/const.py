# ==================================================
# lang_table/const.py
# ==================================================
import struct

HEADER_FMT  = "<I"        # outer header, uint32 LITTLE-endian (uncompressed)
COUNT_FMT   = ">i"        # entry_count, int32 big-endian (inside zlib region)
LENGTH_FMT  = ">H"        # string byte length, uint16 big-endian

HEADER      = struct.Struct(HEADER_FMT)
COUNT       = struct.Struct(COUNT_FMT)
LENGTH      = struct.Struct(LENGTH_FMT)

HEADER_SIZE = HEADER.size   # 4
COUNT_SIZE  = COUNT.size    # 4
LENGTH_SIZE = LENGTH.size   # 2

MAX_STRING_LENGTH = 0xFFFF

# Largest string seen in shipped tables is ~3.4 KiB (Russian), so the
# floor below never has to grow in practice.
INITIAL_BUFFER_SIZE  = 4096
BUFFER_GROWTH_FACTOR = 2

COMPRESSION_LEVEL = 9       # zlib max, smallest output
READ_CHUNK_SIZE   = 16384   # compressed bytes pulled per raw read
