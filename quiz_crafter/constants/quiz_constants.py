"""Domain limits shared by the validation gate and the repository."""

QUIZ_TITLE_MAX_LENGTH: int = 200
QUESTION_TEXT_MAX_LENGTH: int = 1200
OPTION_TEXT_MAX_LENGTH: int = 500
OPTIONS_MIN: int = 2
OPTIONS_MAX: int = 5
