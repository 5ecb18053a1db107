# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os

import tests
from tests.utils import TESTCONFIG


def pytest_addoption(parser):
    parser.addoption("--regenerate-output",
            action="store_true", default=False,
            help="Regenerate test output")


def pytest_collection_modifyitems(config, items):
    ignore = config

    def find_items(basename):
        return [i for i in items
                if os.path.basename(str(i.path)) == basename]

    # Move test_cli cases to the end, because they reset logging
    for i in find_items("test_cli.py"):
        items.remove(i)
        items.append(i)


def pytest_configure(config):
    TESTCONFIG.regenerate_output = config.getoption("--regenerate-output")

    TESTCONFIG.debug = config.getoption("--log-level") == "debug"
    tests.setup_logging()
