"""
Multipart Uploader - client-side orchestrator for S3 multipart uploads

Hashes every part of a local file with SHA-256, uploads the parts
concurrently to presigned URLs with server-verified checksums, reports
aggregate progress and hands the results to a completion action.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
