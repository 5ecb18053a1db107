#
# S-expression trees as spoken by the xend daemon
#
# Copyright (C) 2005 Anthony Liguori <aliguori@us.ibm.com>
# Copyright (C) 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

"""
A tree is built from three node kinds: the NIL singleton, Atom
values and Cons pairs. A list (a b c) is the chain
Cons(a, Cons(b, Cons(c, NIL))).

Paths select nested pairs by their head atom. For the tree

    (domain (name foo) (image (hvm (loader /bin/hvmloader))))

the path "domain/image/hvm/loader" names the (loader ...) pair. Paths
can be passed as a '/' separated string or as a sequence of segments,
see path().
"""

from .util import DevError


class SexprError(ValueError):
    pass


class _Nil(object):
    kind = "nil"

    def __repr__(self):
        return "NIL"

    def __iter__(self):
        return iter([])

    def __bool__(self):
        return False

    def __eq__(self, other):
        return isinstance(other, _Nil)

    def __hash__(self):
        return 0


NIL = _Nil()


class Atom(object):
    kind = "atom"

    def __init__(self, value):
        self.value = value

    def __repr__(self):
        return "Atom(%r)" % self.value

    def __eq__(self, other):
        return isinstance(other, Atom) and self.value == other.value

    def __hash__(self):
        return hash(self.value)


class Cons(object):
    kind = "cons"

    def __init__(self, car, cdr=NIL):
        self.car = car
        self.cdr = cdr

    def __repr__(self):
        return "Cons(%r, %r)" % (self.car, self.cdr)

    def __eq__(self, other):
        return (isinstance(other, Cons) and
                self.car == other.car and
                self.cdr == other.cdr)

    def __hash__(self):
        return hash((self.car, self.cdr))

    def __iter__(self):
        """
        Iterate the cars of the list chain
        """
        cur = self
        while isinstance(cur, Cons):
            yield cur.car
            cur = cur.cdr

    def head(self):
        """
        The value of the car atom, or None
        """
        if isinstance(self.car, Atom):
            return self.car.value
        return None


def is_cons(node):
    return isinstance(node, Cons)


def make_list(items):
    """
    Build a list chain from a python sequence of nodes or strings
    """
    ret = NIL
    for item in reversed(list(items)):
        if isinstance(item, str):
            item = Atom(item)
        ret = Cons(item, ret)
    return ret


##################
# String parsing #
##################

_WHITESPACE = " \t\n\r"


class _Reader(object):
    def __init__(self, text):
        self.text = text
        self.pos = 0

    def skip_space(self):
        while (self.pos < len(self.text) and
               self.text[self.pos] in _WHITESPACE):
            self.pos += 1

    def peek(self):
        if self.pos >= len(self.text):
            return ""
        return self.text[self.pos]

    def read_node(self):
        self.skip_space()
        c = self.peek()
        if c == "(":
            return self.read_list()
        if c == ")":
            raise SexprError(_("unexpected ')' at offset %d") % self.pos)
        if c in ["'", '"']:
            return self.read_quoted(c)
        return self.read_bare()

    def read_list(self):
        start = self.pos
        self.pos += 1
        items = []
        while True:
            self.skip_space()
            c = self.peek()
            if not c:
                raise SexprError(
                    _("unterminated list starting at offset %d") % start)
            if c == ")":
                self.pos += 1
                break
            items.append(self.read_node())
        return make_list(items)

    def read_quoted(self, quote):
        start = self.pos
        self.pos += 1
        ret = []
        while True:
            c = self.peek()
            if not c:
                raise SexprError(
                    _("unterminated string starting at offset %d") % start)
            self.pos += 1
            if c == quote:
                break
            if c == "\\" and self.peek():
                c = self.peek()
                self.pos += 1
            ret.append(c)
        return Atom("".join(ret))

    def read_bare(self):
        start = self.pos
        while True:
            c = self.peek()
            if not c or c in _WHITESPACE or c in "()":
                break
            self.pos += 1
        return Atom(self.text[start:self.pos])


def string_to_sexpr(text):
    """
    Parse @text into a tree. Only the first expression is read,
    trailing data is ignored like the daemon's own parser does.
    """
    reader = _Reader(text)
    reader.skip_space()
    if not reader.peek():
        raise SexprError(_("empty s-expression"))
    return reader.read_node()


def escape(value):
    """
    Escape @value for use inside a single quoted atom
    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _needs_quote(value):
    if not value:
        return True
    for c in value:
        if c in _WHITESPACE or c in "()'\"\\":
            return True
    return False


def sexpr_to_string(node):
    if isinstance(node, Atom):
        if _needs_quote(node.value):
            return "'%s'" % escape(node.value)
        return node.value
    if isinstance(node, Cons):
        return "(" + " ".join(sexpr_to_string(n) for n in node) + ")"
    return "()"


###################
# Path traversal #
###################

def path(*segments):
    """
    Build a segment tuple. Each argument can itself hold several
    '/' separated segments, so path("domain/image", kind, "kernel")
    works as expected.
    """
    ret = []
    for seg in segments:
        if isinstance(seg, (tuple, list)):
            ret.extend(seg)
        else:
            ret.extend(s for s in str(seg).split("/") if s)
    return tuple(ret)


def _segments(p):
    if isinstance(p, str):
        # Empty segments are skipped
        return [s for s in p.split("/") if s]
    if isinstance(p, (tuple, list)):
        return list(p)
    raise DevError("invalid sexpr path %r" % (p,))


def lookup_key(root, p):
    """
    Return the pair named by path @p, with the key atom still at its
    head, or None
    """
    if root is None:
        return None
    segs = _segments(p)
    if not segs:
        return None
    if not isinstance(root, Cons) or root.head() != segs[0]:
        return None

    cur = root
    for seg in segs[1:]:
        found = None
        for child in cur.cdr:
            if isinstance(child, Cons) and child.head() == seg:
                found = child
                break
        if found is None:
            return None
        cur = found
    return cur


def lookup(root, p):
    """
    Return the value part of the pair at @p: for (kernel /boot/vmlinuz)
    that is the list (/boot/vmlinuz). None if missing or empty.
    """
    key = lookup_key(root, p)
    if key is None or not isinstance(key.cdr, Cons):
        return None
    return key.cdr


def has(root, p):
    """
    True if the pair at @p exists, even with no value
    """
    return lookup_key(root, p) is not None


def node(root, p):
    """
    Return the atom value of the pair at @p, or None
    """
    val = lookup(root, p)
    if val is not None and isinstance(val.car, Atom):
        return val.car.value
    return None


def fmt_node(root, fmt, *args):
    return node(root, fmt % args)


def node_copy(root, p, default=None):
    """
    Like node() but with a @default for missing values. Python strings
    are immutable so the returned value is independent of the tree.
    """
    ret = node(root, p)
    if ret is None:
        return default
    return ret


def _strtol_prefix(value):
    """
    Decimal strtol semantics: parse the leading integer of @value,
    0 when there is none
    """
    value = value.lstrip(_WHITESPACE)
    end = 0
    if value[:1] in ["+", "-"]:
        end = 1
    while end < len(value) and value[end].isdigit():
        end += 1
    try:
        return int(value[:end], 10)
    except ValueError:
        return 0


def int_node(root, p):
    """
    Integer value at @p. Absent or unparseable values are 0, which
    callers depend on.
    """
    val = node(root, p)
    if val is None:
        return 0
    return _strtol_prefix(val)


def u64_node(root, p):
    ret = int_node(root, p)
    if ret < 0:
        ret &= (1 << 64) - 1
    return ret
