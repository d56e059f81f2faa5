from enum import Enum


class Phase(str, Enum):
    PRETEST = "pretest"
    TRAINING = "training"
    POSTTEST1 = "posttest1"
    POSTTEST2 = "posttest2"
    POSTTEST3 = "posttest3"


class ActivityType(str, Enum):
    DEMOGRAPHICS = "DEMOGRAPHICS"
    COMPREHENSION_1 = "COMPREHENSION_1"
    COMPREHENSION_2 = "COMPREHENSION_2"
    EFFORT_1 = "EFFORT_1"
    INTELLIGIBILITY_1 = "INTELLIGIBILITY_1"
    TRAINING_SESSION = "TRAINING_SESSION"


class StimulusKind(str, Enum):
    COMPREHENSION = "COMPREHENSION"
    EFFORT = "EFFORT"
    INTELLIGIBILITY = "INTELLIGIBILITY"
    TRAINING = "TRAINING"


class TemplateKind(str, Enum):
    TRAINING_REMINDER = "training_reminder"
    POSTTEST_REMINDER = "posttest_reminder"


class SubmissionError(str, Enum):
    OUT_OF_WINDOW = "OUT_OF_WINDOW"
    UNKNOWN_ACTIVITY = "UNKNOWN_ACTIVITY"
    USER_NOT_FOUND = "USER_NOT_FOUND"
