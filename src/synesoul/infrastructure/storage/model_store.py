"""
Model Store Interface

Abstract key-value store for versioned soul artifacts, with an
in-memory implementation for tests and single-process use.

Versions are opaque, monotonically increasing integers. A stored
version is never overwritten: callers explicitly select the version
they load.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from synesoul.config.logging_config import get_logger
from synesoul.config.settings import StorageSettings
from synesoul.domain.errors import (
    ModelVersionNotFound,
    StorageError,
    VersionExistsError,
)

if TYPE_CHECKING:
    from synesoul.services.baseline.artifacts import SoulArtifacts

logger = get_logger(__name__)


class ModelStore(ABC):
    """
    Abstract model store.

    Implementations raise StorageError (or a subclass) for every
    failure so callers can degrade to in-memory operation.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name."""
        pass

    @abstractmethod
    async def put(self, version: int, artifacts: "SoulArtifacts") -> None:
        """
        Persist artifacts under a version.

        Raises:
            VersionExistsError: If the version is already stored
            StorageError: On any other persistence failure
        """
        pass

    @abstractmethod
    async def get(self, version: int) -> "SoulArtifacts":
        """
        Load artifacts for a version.

        Raises:
            ModelVersionNotFound: If the version is not stored
        """
        pass

    @abstractmethod
    async def latest_version(self) -> Optional[int]:
        """Highest stored version, None when the store is empty."""
        pass

    @abstractmethod
    async def versions(self) -> list[int]:
        """All stored versions, ascending."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check store availability."""
        pass

    async def get_latest(self) -> Optional["SoulArtifacts"]:
        """Load the highest stored version, if any."""
        version = await self.latest_version()
        if version is None:
            return None
        return await self.get(version)


class InMemoryModelStore(ModelStore):
    """
    Process-local store keeping serialized payloads.

    Payloads are deep copies, so stored revisions never alias live
    network weights.
    """

    def __init__(self) -> None:
        self._payloads: dict[int, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    @property
    def provider_name(self) -> str:
        return "memory"

    async def put(self, version: int, artifacts: "SoulArtifacts") -> None:
        from synesoul.services.baseline.artifacts import artifacts_to_payload

        async with self._lock:
            if version in self._payloads:
                raise VersionExistsError(version)
            payload = artifacts_to_payload(artifacts)
            payload["version"] = version
            self._payloads[version] = payload

        logger.debug("Artifacts stored", provider=self.provider_name, version=version)

    async def get(self, version: int) -> "SoulArtifacts":
        from synesoul.services.baseline.artifacts import payload_to_artifacts

        payload = self._payloads.get(version)
        if payload is None:
            raise ModelVersionNotFound(version)
        return payload_to_artifacts(copy.deepcopy(payload))

    async def latest_version(self) -> Optional[int]:
        return max(self._payloads, default=None)

    async def versions(self) -> list[int]:
        return sorted(self._payloads)

    async def health_check(self) -> bool:
        return True


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, Exception) and not isinstance(error, VersionExistsError)


async def persist_with_retry(
    store: ModelStore,
    artifacts: "SoulArtifacts",
    settings: Optional[StorageSettings] = None,
) -> None:
    """
    Persist artifacts under their own version, retrying transient failures.

    Version conflicts are not retried.

    Raises:
        StorageError: After the final failed attempt
    """
    settings = settings or StorageSettings()
    version = artifacts.version

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.retry_attempts),
            wait=wait_exponential(
                multiplier=settings.retry_multiplier,
                min=settings.retry_wait_min,
                max=settings.retry_wait_max,
            ),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                await store.put(version, artifacts)
    except StorageError:
        raise
    except RetryError as e:
        raise StorageError(
            f"Failed to persist version {version}",
            version=version,
            original_error=e,
        ) from e
    except Exception as e:
        raise StorageError(
            f"Failed to persist version {version}: {e}",
            version=version,
            original_error=e,
        ) from e

    logger.info("Artifacts persisted", provider=store.provider_name, version=version)
