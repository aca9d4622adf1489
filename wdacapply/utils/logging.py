import logging as _logging
from typing import cast

DEBUG = _logging.DEBUG
INFO = _logging.INFO
VERBOSE = (INFO + DEBUG) // 2
_logging.addLevelName(VERBOSE, "VERBOSE")
WARNING = _logging.WARNING
ERROR = _logging.ERROR


class Logger(_logging.Logger):
    def verbose(self, msg: str, *args, **kwargs) -> None:
        return self.log(VERBOSE, msg, *args, **kwargs)


def get_logger(name: str) -> Logger:
    _logging.setLoggerClass(Logger)
    return cast(Logger, _logging.getLogger(name))
