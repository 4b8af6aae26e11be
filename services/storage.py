"""
Object Storage Service

S3-compatible image storage (Cloudflare R2) accessed through boto3.
"""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStore:
    """Bucket wrapper returning public URLs for uploaded objects."""

    def __init__(self, endpoint_url=None, access_key=None, secret_key=None,
                 bucket=None, public_base_url='', client=None):
        self.endpoint_url = endpoint_url
        self.access_key = access_key
        self.secret_key = secret_key
        self.bucket = bucket
        self.public_base_url = (public_base_url or '').rstrip('/')
        self._client = client

    @property
    def is_configured(self):
        return bool(self.bucket) and (self._client is not None or bool(self.endpoint_url))

    @property
    def client(self):
        if self._client is None:
            if not self.is_configured:
                raise StorageError("object store is not configured")
            self._client = boto3.client(
                's3',
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                region_name='auto',
            )
        return self._client

    def public_url(self, key):
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"

    def put(self, key, content_type, data):
        """
        Upload bytes under key.

        Returns:
            str: Public URL of the object
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or 'application/octet-stream',
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"upload {key}: {e}") from e
        logger.info(f"Uploaded {key} ({len(data)} bytes)")
        return self.public_url(key)

    def list(self, prefix=''):
        """Return every key under prefix."""
        keys = []
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj['Key'] for obj in page.get('Contents', []))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"list {prefix}: {e}") from e
        return keys

    def get(self, key):
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"get {key}: {e}") from e
