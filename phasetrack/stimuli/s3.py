import logging
from typing import BinaryIO

import boto3
from botocore.exceptions import ClientError

from phasetrack.exceptions import StimulusNotFoundError
from phasetrack.models.enums import StimulusKind
from phasetrack.stimuli.base import AUDIO_SUFFIX, StimulusSource, stimulus_name

logger = logging.getLogger(__name__)


class S3StimulusSource(StimulusSource):
    """Stimuli stored as ``{prefix}{speaker}/{name}.wav`` in one bucket."""

    def __init__(self, bucket: str, prefix: str = "", region: str = "us-east-1", client=None):
        self._bucket = bucket
        self._prefix = prefix
        self._client = client or boto3.client("s3", region_name=region)

    def _key(self, speaker: str, name: str) -> str:
        return f"{self._prefix}{speaker}/{name}{AUDIO_SUFFIX}"

    def fetch_stimulus(
        self, speaker: str, kind: StimulusKind, version: int | None, sentence: int
    ) -> BinaryIO:
        name = stimulus_name(kind, speaker, version, sentence)
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=self._key(speaker, name))
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                raise StimulusNotFoundError(speaker, name) from e
            logger.error("S3 access error for %s/%s: %s", speaker, name, e)
            raise
        return resp["Body"]

    def list_stimuli(self, speaker: str) -> list[str]:
        prefix = f"{self._prefix}{speaker}/"
        names: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                names.append(obj["Key"][len(prefix):])
        return sorted(names)
