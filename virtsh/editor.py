#
# Edit XML documents in the user's $EDITOR
#
# Copyright 2009-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import os
import re
import subprocess
import tempfile

from .logger import log

# Characters allowed in the editor command and temp filename without
# going through the shell
_SAFE_RE = re.compile(r"^[A-Za-z0-9\-/_.:@]+$")


class EditError(Exception):
    pass


def get_editor():
    return (os.environ.get("VISUAL") or
            os.environ.get("EDITOR") or
            "vi")


def write_temp_file(doc):
    """
    Write @doc to a new $TMPDIR/virshXXXXXX.xml file and return its path
    """
    tmpdir = os.environ.get("TMPDIR") or "/tmp"
    try:
        fd, path = tempfile.mkstemp(prefix="virsh", suffix=".xml",
                                    dir=tmpdir)
    except OSError as e:
        raise EditError(
            _("mkstemps: failed to create temporary file: %s") %
            e.strerror) from None

    try:
        with os.fdopen(fd, "w") as f:
            f.write(doc)
    except OSError as e:
        os.unlink(path)
        raise EditError(
            _("write: %(path)s: failed to write to temporary file: "
              "%(err)s") % {"path": path, "err": e.strerror}) from None
    return path


def edit_file(path):
    """
    Run the editor on @path. An editor value with arguments or other
    unusual characters is run through 'sh -c'
    """
    if not _SAFE_RE.match(path):
        raise EditError(
            _("%s: temporary filename contains shell meta or other "
              "unacceptable characters (is $TMPDIR wrong?)") % path)

    editor = get_editor()
    command = "%s %s" % (editor, path)
    if _SAFE_RE.match(editor):
        argv = [editor, path]
    else:
        argv = ["sh", "-c", command]

    log.debug("Running editor: %s", argv)
    try:
        ret = subprocess.call(argv)
    except OSError as e:
        raise EditError(_("%(cmd)s: edit failed: %(err)s") %
                {"cmd": command, "err": e.strerror}) from None
    if ret != 0:
        raise EditError(
            _("%s: command exited with non-zero status") % command)


def read_back_file(path):
    try:
        with open(path) as f:
            return f.read()
    except OSError as e:
        raise EditError(_("%(path)s: failed to read temporary file: "
                          "%(err)s") % {"path": path, "err": e.strerror}) from None


def edit_xml(shell, kind, name, get_xml, define_xml):
    """
    The shared workflow of the *edit commands: dump the XML with
    @get_xml(), let the user edit it, check nobody changed the object
    meanwhile, then hand the new XML to @define_xml(xml).

    :param kind: Object label for messages, like "Domain" or "Network"
    """
    doc = get_xml()
    path = None
    try:
        path = write_temp_file(doc)
        edit_file(path)
        doc_edited = read_back_file(path)
    except EditError as e:
        shell.error(str(e))
        return False
    finally:
        if path and os.path.exists(path):
            os.unlink(path)

    if doc == doc_edited:
        shell.out(_("%(kind)s %(name)s XML configuration not changed.\n") %
                  {"kind": kind, "name": name})
        return True

    doc_reread = get_xml()
    if doc != doc_reread:
        shell.error(_("ERROR: the XML configuration was changed by "
                      "another user"))
        return False

    define_xml(doc_edited)
    shell.out(_("%(kind)s %(name)s XML configuration edited.\n") %
              {"kind": kind, "name": name})
    return True
