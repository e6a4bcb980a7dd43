from .fake_ocr_service import FakeOcrService
from .in_memory_blob_storage import InMemoryBlobStorage

__all__ = ["FakeOcrService", "InMemoryBlobStorage"]
