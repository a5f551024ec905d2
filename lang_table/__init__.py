from .errors import (DecompressionError, InvalidEncoding, InvalidState,
                     LangTableError, StringTooLong, TruncatedInput)
from .codec   import StringCodec
from .records import AsyncRecordReader, AsyncRecordWriter, RecordReader, RecordWriter
from .table   import TableFile

__version__ = "0.1.0"
__all__ = [
    "TableFile",
    "StringCodec",
    "RecordReader", "RecordWriter", "AsyncRecordReader", "AsyncRecordWriter",
    "LangTableError", "TruncatedInput", "InvalidEncoding", "StringTooLong",
    "DecompressionError", "InvalidState",
]
