#
# Copyright 2006, 2013 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.
#

import os


class DevError(RuntimeError):
    def __init__(self, msg):
        RuntimeError.__init__(self, "programming error: %s" % msg)


def listify(l):
    if l is None:
        return []
    elif not isinstance(l, list):
        return [l]
    else:
        return l


def xml_escape(xml):
    """
    Replaces chars ' " < > & with xml safe counterparts
    """
    if xml:
        xml = xml.replace("&", "&amp;")
        xml = xml.replace("'", "&apos;")
        xml = xml.replace("\"", "&quot;")
        xml = xml.replace("<", "&lt;")
        xml = xml.replace(">", "&gt;")
    return xml


_SHELL_SPECIAL = "\r\t\n !\"#$&'()*;<>?[\\]^`{|}~"


def shell_escape(s):
    """
    Single quote @s if it contains any character the shell would
    interpret. Embedded single quotes become '\\''
    """
    if not any(c in _SHELL_SPECIAL for c in s):
        return s
    return "'" + s.replace("'", "'\\''") + "'"


def popcount(val):
    return bin(val).count("1")


def in_testsuite():
    return "VIRTSH_TEST_SUITE" in os.environ


def diff(origstr, newstr, fromfile="Original", tofile="New"):
    import difflib
    dlist = difflib.unified_diff(
            origstr.splitlines(1), newstr.splitlines(1),
            fromfile=fromfile, tofile=tofile)
    return "".join(dlist)


def parse_int_auto(val):
    """
    Parse an integer with C style base detection: 0x for hex,
    a leading 0 for octal, decimal otherwise. Returns None on error
    """
    if not val:
        return None
    sign = 1
    digits = val
    if digits[0] in "+-":
        if digits[0] == "-":
            sign = -1
        digits = digits[1:]

    base = 10
    if digits[:2].lower() == "0x":
        base = 16
        digits = digits[2:]
    elif digits.startswith("0") and len(digits) > 1:
        base = 8
        digits = digits[1:]

    if not digits or not digits.isalnum():
        return None
    try:
        return sign * int(digits, base)
    except ValueError:
        return None
