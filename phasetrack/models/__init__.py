from phasetrack.models.demographics import (
    CpibAnswers,
    DemographicsForm,
    HearingThreshold,
    ResearchData,
)
from phasetrack.models.enums import (
    ActivityType,
    Phase,
    StimulusKind,
    SubmissionError,
    TemplateKind,
)
from phasetrack.models.protocol import (
    PhaseDefinition,
    StimulusPattern,
)
from phasetrack.models.user import (
    ActivityCompletionEvent,
    ActivityKey,
    ResponseRecord,
    StimulusResponse,
    UserProgressState,
)
from phasetrack.models.results import (
    EligibilityReport,
    PhaseCount,
    ReminderRequest,
    ReminderSweepReport,
    ResponseExportRow,
    StudyStats,
    SubmissionResult,
    UserExportRow,
)
