"""
Storage Module — S3 object store gateway.
"""

from .gateway import ObjectStoreGateway, bucket_base_url, build_s3_client

__all__ = ["ObjectStoreGateway", "bucket_base_url", "build_s3_client"]
