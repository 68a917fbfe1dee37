# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import logging

logger = None


def get_standard_logger() -> logging.Logger:
    """
    Retrieves and configures a standard logger for the multiverse_harness package

    @return: Logger
    """
    standard_logger = logging.getLogger("multiverse_harness")

    if not standard_logger.handlers:
        ch = logging.StreamHandler()
        f = logging.Formatter(
            "%(asctime)s: %(process)d %(levelname)s %(name)s: %(message)s"
        )
        ch.setFormatter(f)
        standard_logger.addHandler(ch)
    standard_logger.setLevel(logging.DEBUG)
    return standard_logger


logger = get_standard_logger()
