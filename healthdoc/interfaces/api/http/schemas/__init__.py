from .access_grants import AccessGrantRes, AccessGrantsListRes, CreateAccessGrantReq
from .documents import (
    AssignManagerReq,
    DeleteDocumentRes,
    DocumentRes,
    DocumentsListRes,
    DocumentStatusRes,
    DownloadUrlRes,
)

__all__ = [
    "AccessGrantRes",
    "AccessGrantsListRes",
    "AssignManagerReq",
    "CreateAccessGrantReq",
    "DeleteDocumentRes",
    "DocumentRes",
    "DocumentStatusRes",
    "DocumentsListRes",
    "DownloadUrlRes",
]
