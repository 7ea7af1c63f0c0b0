"""Storage factory: creates local, S3 or in-memory backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sharebox.infrastructure.external.storage.protocol import StorageProtocol

if TYPE_CHECKING:
    from sharebox.core.config import Settings


class StorageFactory:
    """Factory for storage backends based on configuration."""

    @staticmethod
    def create_storage(settings: "Settings | None" = None) -> StorageProtocol:
        """Create storage backend from settings.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            LocalStorage, S3Storage or MemoryStorage.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from sharebox.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "local":
            from sharebox.infrastructure.external.storage.local_storage import (
                LocalStorage,
            )

            if not s.storage_root:
                raise ValueError("STORAGE_ROOT required for local backend")
            return LocalStorage(storage_root=s.storage_root)
        if backend == "memory":
            from sharebox.infrastructure.external.storage.memory_storage import (
                MemoryStorage,
            )

            return MemoryStorage()
        if backend == "s3":
            if not s.s3_bucket:
                raise ValueError("S3_BUCKET required for s3 backend")
            try:
                from sharebox.infrastructure.external.storage.s3_storage import (
                    S3Storage,
                )
            except ImportError as e:
                raise ValueError(
                    "S3 backend requires boto3. Install with: pip install 'sharebox[storage]'"
                ) from e
            return S3Storage(
                bucket=s.s3_bucket,
                region=s.s3_region,
                endpoint_url=s.s3_endpoint_url,
                access_key=s.s3_access_key,
                secret_key=(
                    s.s3_secret_key.get_secret_value() if s.s3_secret_key else None
                ),
            )
        raise ValueError(
            f"Unknown storage backend: {backend}. Supported: 'local', 's3', 'memory'"
        )
