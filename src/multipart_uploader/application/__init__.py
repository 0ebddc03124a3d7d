"""Application layer: orchestration of the multipart upload protocol."""

from multipart_uploader.application.multipart_upload import MultipartUpload

__all__ = ["MultipartUpload"]
