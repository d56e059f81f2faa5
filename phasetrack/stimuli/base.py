import re
from abc import ABC, abstractmethod
from typing import BinaryIO

from pydantic import BaseModel

from phasetrack.exceptions import UnknownActivityError
from phasetrack.models.enums import StimulusKind
from phasetrack.protocol import STIMULUS_PATTERNS

AUDIO_SUFFIX = ".wav"

_NAME_RE = re.compile(
    r"^(?P<speaker>[^_]+)_(?:"
    r"(?P<code>Comp|Trn)_(?P<version>\d{2})_(?P<sentence>\d{2})"
    r"|(?P<flat>EFF|Int)(?P<flat_sentence>\d{2}))$"
)

_CODE_TO_KIND = {p.code: kind for kind, p in STIMULUS_PATTERNS.items()}


class StimulusName(BaseModel):
    speaker: str
    kind: StimulusKind
    version: int | None = None
    sentence: int


def stimulus_name(
    kind: StimulusKind, speaker: str, version: int | None, sentence: int
) -> str:
    """File stem for a stimulus, e.g. ``spk01_Comp_02_05``. Training uses the day as version."""
    pattern = STIMULUS_PATTERNS[kind]
    if pattern.has_version and not version:
        raise UnknownActivityError(f"Version required for {kind.value}")
    return pattern.template.format(speaker=speaker, version=version or 0, sentence=sentence)


def parse_stimulus_name(name: str) -> StimulusName | None:
    stem = name[: -len(AUDIO_SUFFIX)] if name.endswith(AUDIO_SUFFIX) else name
    match = _NAME_RE.match(stem)
    if match is None:
        return None
    if match.group("code"):
        return StimulusName(
            speaker=match.group("speaker"),
            kind=_CODE_TO_KIND[match.group("code")],
            version=int(match.group("version")),
            sentence=int(match.group("sentence")),
        )
    return StimulusName(
        speaker=match.group("speaker"),
        kind=_CODE_TO_KIND[match.group("flat")],
        sentence=int(match.group("flat_sentence")),
    )


class StimulusSource(ABC):
    @abstractmethod
    def fetch_stimulus(
        self, speaker: str, kind: StimulusKind, version: int | None, sentence: int
    ) -> BinaryIO:
        """Open a byte stream for one stimulus. Raises StimulusNotFoundError."""

    @abstractmethod
    def list_stimuli(self, speaker: str) -> list[str]: ...
