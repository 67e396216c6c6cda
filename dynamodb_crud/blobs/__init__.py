from .blob_store import BlobFile, BlobStore, map_s3_error

__all__ = ["BlobFile", "BlobStore", "map_s3_error"]
