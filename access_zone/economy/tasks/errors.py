class TaskError(Exception):
    pass


class DailyLimitReachedError(TaskError):
    pass


class AlreadyCheckedInError(TaskError):
    pass


class InvalidQuizResultError(TaskError):
    pass
