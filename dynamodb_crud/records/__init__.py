from .codec import ETAG_FIELD, ID_FIELD, TIMESTAMP_FIELD, Record, RecordCodec
from .crud import RecordCrud

__all__ = [
    "ETAG_FIELD",
    "ID_FIELD",
    "TIMESTAMP_FIELD",
    "Record",
    "RecordCodec",
    "RecordCrud",
]
