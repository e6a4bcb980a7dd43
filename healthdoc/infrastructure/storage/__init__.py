from .s3_blob_storage import S3BlobStorage, S3Config

__all__ = ["S3BlobStorage", "S3Config"]
