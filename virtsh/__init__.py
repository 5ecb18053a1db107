# Copyright (C) 2013, 2014 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

# pylint: disable=wrong-import-position

from virtsh.buildconfig import BuildConfig


def _setup_i18n():
    import gettext
    import locale

    try:
        locale.setlocale(locale.LC_ALL, '')
    except Exception:  # pragma: no cover
        # Can happen if user passed a bogus LANG
        pass

    gettext.install("virtsh", BuildConfig.gettext_dir,
                    names=["ngettext"])
    gettext.bindtextdomain("virtsh", BuildConfig.gettext_dir)


_setup_i18n()


from virtsh.logger import log, reset_logging
