# Copyright 2019 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import logging

# This is exported by virtsh/__init__.py
log = logging.getLogger("virtsh")

# virsh has a NOTICE level between INFO and WARNING
NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

# virsh debug levels 0-4, in order
DEBUG_LEVELS = [logging.DEBUG, logging.INFO, NOTICE,
                logging.WARNING, logging.ERROR]
DEFAULT_DEBUG_LEVEL = 4


def level_from_debug(debug):
    """
    Map a virsh debug level 0-4 onto a logging level
    """
    debug = max(0, min(debug, len(DEBUG_LEVELS) - 1))
    return DEBUG_LEVELS[debug]


def reset_logging():
    rootLogger = logging.getLogger()

    # Undo early logging
    for handler in rootLogger.handlers:
        rootLogger.removeHandler(handler)

    # Undo any logging on our log handler. Needed for test suite
    for handler in log.handlers[:]:
        log.removeHandler(handler)
        handler.close()
