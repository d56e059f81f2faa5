import logging
import time
from collections.abc import Callable
from pathlib import Path

from phasetrack.models.enums import StimulusKind
from phasetrack.stimuli.base import AUDIO_SUFFIX, StimulusSource, stimulus_name
from phasetrack.stimuli.s3 import S3StimulusSource

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60
_CHUNK_SIZE = 64 * 1024


class StimulusCache:
    """Local copies of downloaded stimuli, dropped after a fixed TTL."""

    def __init__(
        self,
        source: StimulusSource,
        directory: str | Path,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._source = source
        self._dir = Path(directory)
        self._ttl = ttl_seconds
        self._clock = clock
        self._fetched: dict[str, float] = {}
        self._dir.mkdir(parents=True, exist_ok=True)

    def _expired(self, filename: str) -> bool:
        fetched_at = self._fetched.get(filename)
        return fetched_at is None or self._clock() - fetched_at > self._ttl

    def get(
        self, speaker: str, kind: StimulusKind, version: int | None, sentence: int
    ) -> Path:
        filename = stimulus_name(kind, speaker, version, sentence) + AUDIO_SUFFIX
        path = self._dir / filename
        if path.exists() and not self._expired(filename):
            return path

        stream = self._source.fetch_stimulus(speaker, kind, version, sentence)
        try:
            with open(path, "wb") as f:
                while chunk := stream.read(_CHUNK_SIZE):
                    f.write(chunk)
        finally:
            stream.close()
        self._fetched[filename] = self._clock()
        logger.debug("Cached stimulus %s", filename)
        return path

    def remove(self, filename: str) -> bool:
        path = self._dir / filename
        self._fetched.pop(filename, None)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Removed cached stimulus %s", filename)
        return True

    def cleanup_expired(self) -> list[str]:
        """Remove expired entries and files left over from earlier runs."""
        removed = [name for name in list(self._fetched) if self._expired(name) and self.remove(name)]
        for path in self._dir.iterdir():
            if path.is_file() and path.name not in self._fetched:
                path.unlink()
                removed.append(path.name)
        return removed


def cache_from_settings(config, client=None) -> StimulusCache:
    """S3-backed cache configured from ``phasetrack.settings.Settings``."""
    if not config.STIMULUS_BUCKET:
        raise ValueError("PHASETRACK_STIMULUS_BUCKET is not set")
    source = S3StimulusSource(
        bucket=config.STIMULUS_BUCKET,
        prefix=config.STIMULUS_PREFIX,
        region=config.AWS_REGION,
        client=client,
    )
    return StimulusCache(
        source,
        config.STIMULUS_CACHE_DIR,
        ttl_seconds=config.STIMULUS_CACHE_TTL_SECONDS,
    )
