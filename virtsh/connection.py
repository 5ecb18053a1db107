#
# Copyright 2013, 2014, 2015 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import libvirt

from .logger import log

# Lookup methods for lookup_domain()
BY_ID = 1 << 1
BY_UUID = 1 << 2
BY_NAME = 1 << 3
BY_ALL = BY_ID | BY_UUID | BY_NAME

_UUID_STRING_LEN = 36


class VirshConnection(object):
    """
    Wrapper for libvirt connection that remembers how it was opened,
    so the shell can reopen it after a transport failure
    """
    def __init__(self, uri, readonly=False):
        self._open_uri = uri or ""
        self._uri = self._open_uri
        self.readonly = readonly
        self._libvirtconn = None

    def __getattr__(self, attr):
        # Proxy virConnect API calls
        libvirtconn = self.__dict__.get("_libvirtconn")
        return getattr(libvirtconn, attr)

    def _get_uri(self):
        return self._uri or self._open_uri
    uri = property(_get_uri)

    def get_conn_for_api_arg(self):
        return self._libvirtconn

    def close(self):
        ret = 0
        if self._libvirtconn:
            ret = self._libvirtconn.close()
        self._libvirtconn = None
        return ret

    def is_open(self):
        return bool(self._libvirtconn)

    def open(self, authcb, cbdata):
        # Mirror the set of libvirt.c virConnectCredTypeDefault
        valid_auth_options = [
            libvirt.VIR_CRED_AUTHNAME,
            libvirt.VIR_CRED_ECHOPROMPT,
            libvirt.VIR_CRED_REALM,
            libvirt.VIR_CRED_PASSPHRASE,
            libvirt.VIR_CRED_NOECHOPROMPT,
            libvirt.VIR_CRED_EXTERNAL,
        ]
        open_flags = 0
        if self.readonly:
            open_flags |= libvirt.VIR_CONNECT_RO

        conn = libvirt.openAuth(self._open_uri or None,
                [valid_auth_options, authcb, cbdata],
                open_flags)

        self._libvirtconn = conn
        if not self._open_uri:
            self._uri = self._libvirtconn.getURI()


def getConnection(uri, readonly=False):
    log.debug("Requesting libvirt URI %s", (uri or "default"))
    conn = VirshConnection(uri, readonly=readonly)
    conn.open(_openauth_cb, None)
    log.debug("Received libvirt URI %s", conn.uri)
    return conn


def _openauth_cb(creds, _cbdata):  # pragma: no cover
    for cred in creds:
        # Libvirt virConnectCredential
        credtype, prompt, _challenge, _defresult, _result = cred
        noecho = credtype in [
                libvirt.VIR_CRED_PASSPHRASE, libvirt.VIR_CRED_NOECHOPROMPT]
        if not prompt:
            log.error("No prompt for auth credtype=%s", credtype)
            return -1
        log.debug("openauth_cb prompt=%s", prompt)

        prompt += ": "
        if noecho:
            import getpass
            res = getpass.getpass(prompt)
        else:
            res = input(prompt)

        # Overwriting 'result' is how we return values to libvirt
        cred[-1] = res
    return 0


##################
# Object lookups #
##################

def try_lookup(cb, arg):
    """
    Run a libvirt lookup, returning None if it fails. The error
    stays recorded in the shell, like the C tool reported it
    """
    try:
        return cb(arg)
    except libvirt.libvirtError as e:
        log.debug("Lookup %s(%s) failed: %s", cb.__name__, arg, e)
        return None


def parse_id(val):
    try:
        ret = int(val, 10)
    except ValueError:
        return None
    if ret < 0:
        return None
    return ret


def lookup_domain(shell, cmd, optname="domain", by=BY_ALL):
    """
    Look up the domain named by option @optname, trying it as an
    id, then a UUID, then a name. Returns (domain, name string) with
    domain None when nothing matched
    """
    ret, name = cmd.opt_string(optname)
    if ret <= 0:
        return None, None
    shell.debug(1, "%s: found option <%s>: %s" % (cmd.name, optname, name))

    conn = shell.conn
    dom = None
    domid = parse_id(name)
    if by & BY_ID and domid is not None:
        shell.debug(0, "%s: <%s> seems like domain ID" % (cmd.name, optname))
        dom = try_lookup(conn.lookupByID, domid)

    if not dom and by & BY_UUID and len(name) == _UUID_STRING_LEN:
        shell.debug(0, "%s: <%s> trying as domain UUID" % (cmd.name, optname))
        dom = try_lookup(conn.lookupByUUIDString, name)

    if not dom and by & BY_NAME:
        shell.debug(0, "%s: <%s> trying as domain NAME" % (cmd.name, optname))
        dom = try_lookup(conn.lookupByName, name)

    if not dom:
        shell.error(_("failed to get domain '%s'") % name)
    return dom, name


def _lookup_by_name_or_key(shell, cmd, optname, kind, by_name, by_key,
                           keylabel):
    ret, name = cmd.opt_string(optname)
    if ret <= 0:
        return None, None
    shell.debug(1, "%s: found option <%s>: %s" % (cmd.name, optname, name))

    obj = None
    if by_name:
        shell.debug(0, "%s: <%s> trying as %s NAME" %
                    (cmd.name, optname, kind))
        obj = try_lookup(by_name, name)
    if not obj and by_key:
        shell.debug(0, "%s: <%s> trying as %s %s" %
                    (cmd.name, optname, kind, keylabel))
        obj = try_lookup(by_key, name)

    if not obj:
        shell.error(_("failed to get %(kind)s '%(name)s'") %
                    {"kind": kind, "name": name})
    return obj, name


def lookup_network(shell, cmd, optname="network"):
    conn = shell.conn
    return _lookup_by_name_or_key(shell, cmd, optname, "network",
            conn.networkLookupByName, conn.networkLookupByUUIDString, "UUID")


def lookup_pool(shell, cmd, optname="pool"):
    conn = shell.conn
    return _lookup_by_name_or_key(shell, cmd, optname, "pool",
            conn.storagePoolLookupByName,
            conn.storagePoolLookupByUUIDString, "UUID")


def lookup_interface(shell, cmd, optname="interface"):
    conn = shell.conn
    return _lookup_by_name_or_key(shell, cmd, optname, "interface",
            conn.interfaceLookupByName,
            conn.interfaceLookupByMACString, "MAC")


def lookup_nwfilter(shell, cmd, optname="nwfilter"):
    conn = shell.conn
    return _lookup_by_name_or_key(shell, cmd, optname, "nwfilter",
            conn.nwfilterLookupByName, conn.nwfilterLookupByUUIDString, "UUID")


def lookup_volume(shell, cmd, optname="vol", pooloptname="pool"):
    """
    Look up a volume by name inside --pool when given, else by key
    or path
    """
    ret, name = cmd.opt_string(optname)
    if ret <= 0:
        return None, None

    pool = None
    if cmd.opt(pooloptname)[0] > 0:
        pool, dummy = lookup_pool(shell, cmd, pooloptname)
        if not pool:
            return None, name

    vol = None
    if pool:
        shell.debug(0, "%s: <%s> trying as vol NAME" % (cmd.name, optname))
        vol = try_lookup(pool.storageVolLookupByName, name)
    if not vol:
        shell.debug(0, "%s: <%s> trying as vol key" % (cmd.name, optname))
        vol = try_lookup(shell.conn.storageVolLookupByKey, name)
    if not vol:
        shell.debug(0, "%s: <%s> trying as vol path" % (cmd.name, optname))
        vol = try_lookup(shell.conn.storageVolLookupByPath, name)

    if not vol:
        shell.error(_("failed to get vol '%s'") % name)
    return vol, name
