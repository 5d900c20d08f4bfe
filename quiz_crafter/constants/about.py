"""Static metadata describing QuizCrafter."""

APP_NAME = "QuizCrafter"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizCrafter is a local quiz authoring and playback tool. Quizzes, questions "
    "and scored results are stored in a single SQLite file on this machine."
)
