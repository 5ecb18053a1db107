#
# Command, option and group definitions
#
# Copyright 2005, 2007-2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

from .logger import log
from .util import DevError


# Option kinds
OPT_BOOL = "bool"
OPT_INT = "int"
OPT_STRING = "string"
OPT_DATA = "data"
OPT_ARGV = "argv"

OPT_KINDS = [OPT_BOOL, OPT_INT, OPT_STRING, OPT_DATA, OPT_ARGV]

# The parser tracks options with bitmasks. Python ints don't overflow,
# but keep the historical cap so oversized tables are caught at startup
MAX_OPTIONS = 32


class CommandDefError(DevError):
    pass


class OptionDef(object):
    """
    Definition of a single command option

    :param required: The option must be passed
    :param requires_value: Only accepted as --name VALUE, never filled
        from positional data
    :param empty_ok: An empty string is a valid value
    """
    def __init__(self, name, kind, helpstr, required=False,
                 requires_value=False, empty_ok=False):
        if kind not in OPT_KINDS:
            raise CommandDefError("unknown option kind '%s' for '%s'" %
                    (kind, name))
        self.name = name
        self.kind = kind
        self.help = helpstr
        self.required = required
        self.requires_value = requires_value
        self.empty_ok = empty_ok

    def __repr__(self):
        return "<OptionDef %s %s>" % (self.name, self.kind)

    def is_positional(self):
        return self.kind in [OPT_DATA, OPT_ARGV]

    def synopsis(self):
        if self.kind == OPT_BOOL:
            return "[--%s]" % self.name
        if self.kind == OPT_INT:
            if self.required:
                return "<%s>" % self.name
            return _("[--%s <number>]") % self.name
        if self.kind == OPT_STRING:
            return _("[--%s <string>]") % self.name
        if self.kind == OPT_DATA:
            if self.required:
                return "<%s>" % self.name
            return "[<%s>]" % self.name
        if self.required:
            return "<%s>..." % self.name
        return "[<%s>]..." % self.name

    def usage(self):
        if self.kind == OPT_BOOL:
            return "--%s" % self.name
        if self.kind == OPT_INT:
            if self.required:
                return _("[--%s] <number>") % self.name
            return _("--%s <number>") % self.name
        if self.kind == OPT_STRING:
            return _("--%s <string>") % self.name
        if self.kind == OPT_DATA:
            return _("[--%s] <string>") % self.name
        return "<%s>" % self.name


class CommandDef(object):
    """
    A single shell command

    :param handler: callable(shell, parsed_command) returning True
        on success
    :param info: dict with 'help' (one line summary) and 'desc'
    :param no_connect: command can run without a hypervisor connection
    """
    def __init__(self, name, handler, opts=None, info=None,
                 no_connect=False):
        self.name = name
        self.handler = handler
        self.opts = opts or []
        self.info = info or {}
        self.no_connect = no_connect

        self._masks = None

    def __repr__(self):
        return "<CommandDef %s>" % self.name

    def get_info(self, key):
        return self.info.get(key, "")

    def find_option(self, name):
        for opt in self.opts:
            if opt.name == name:
                return opt
        return None

    def option_index(self, optdef):
        for idx, opt in enumerate(self.opts):
            if opt is optdef:
                return idx
        raise DevError("option %s is not part of command %s" %
                (optdef.name, self.name))

    def _compute_masks(self):
        need_arg = 0
        required = 0
        seen_optional = False
        names = []

        if len(self.opts) > MAX_OPTIONS:
            raise CommandDefError("command '%s' has %d options, max is %d" %
                    (self.name, len(self.opts), MAX_OPTIONS))

        for idx, opt in enumerate(self.opts):
            if opt.name in names:
                raise CommandDefError("duplicate option '%s' in '%s'" %
                        (opt.name, self.name))
            names.append(opt.name)

            if opt.kind == OPT_BOOL:
                if opt.required:
                    raise CommandDefError(
                        "bool option '%s' in '%s' can't be required" %
                        (opt.name, self.name))
                continue

            if opt.requires_value:
                if opt.required:
                    required |= 1 << idx
                continue

            need_arg |= 1 << idx
            if opt.required:
                if seen_optional:
                    raise CommandDefError(
                        "required option '%s' in '%s' listed after an "
                        "optional one" % (opt.name, self.name))
                required |= 1 << idx
            else:
                seen_optional = True

            if opt.kind == OPT_ARGV and idx != len(self.opts) - 1:
                raise CommandDefError("argv option '%s' in '%s' must be last" %
                        (opt.name, self.name))

        return need_arg, required

    def option_masks(self):
        """
        Return (need_arg_mask, required_mask). Bit N refers to self.opts[N]
        """
        if self._masks is None:
            self._masks = self._compute_masks()
        return self._masks

    def format_help(self):
        ret = _("  NAME\n")
        ret += "    %s - %s\n" % (self.name, self.get_info("help"))

        ret += _("\n  SYNOPSIS\n")
        ret += "    %s" % self.name
        for opt in self.opts:
            ret += " " + opt.synopsis()
        ret += "\n"

        desc = self.get_info("desc")
        if desc:
            ret += _("\n  DESCRIPTION\n")
            ret += "    %s\n" % desc

        if self.opts:
            ret += _("\n  OPTIONS\n")
            for opt in self.opts:
                ret += "    %-15s  %s\n" % (opt.usage(), opt.help)
        ret += "\n"
        return ret


class CommandGroup(object):
    def __init__(self, name, keyword, commands):
        self.name = name
        self.keyword = keyword
        self.commands = list(commands)

    def __repr__(self):
        return "<CommandGroup %s>" % self.keyword

    def format_help(self):
        ret = _(" %s (help keyword '%s'):\n") % (self.name, self.keyword)
        for cmd in self.commands:
            ret += "    %-30s %s\n" % (cmd.name, cmd.get_info("help"))
        return ret


class CommandRegistry(object):
    """
    The ordered catalog of command groups
    """
    def __init__(self, groups):
        self.groups = list(groups)

    def validate(self):
        """
        Check every command definition, raising CommandDefError on the
        first broken one. Called once at startup.
        """
        seen = {}
        for grp in self.groups:
            for cmd in grp.commands:
                if cmd.name in seen:
                    raise CommandDefError(
                        "command '%s' registered in both '%s' and '%s'" %
                        (cmd.name, seen[cmd.name], grp.keyword))
                seen[cmd.name] = grp.keyword
                cmd.option_masks()
        log.debug("Validated %d commands in %d groups",
                len(seen), len(self.groups))

    def all_commands(self):
        for grp in self.groups:
            for cmd in grp.commands:
                yield cmd

    def find_command(self, name):
        for cmd in self.all_commands():
            if cmd.name == name:
                return cmd
        return None

    def find_group(self, name):
        for grp in self.groups:
            if grp.keyword == name or grp.name == name:
                return grp
        return None

    def format_help(self):
        ret = _("Grouped commands:\n\n")
        for grp in self.groups:
            ret += grp.format_help()
            ret += "\n"
        return ret
