#
# Run a long domain job in a worker thread while reporting progress
#
# Copyright 2011 Red Hat, Inc.
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import queue
import sys
import threading
import time

import libvirt

from .logger import log

_POLL_INTERVAL = 0.5


def format_progress(label, remaining, total):
    """
    Return the progress line for a job, or None if the job has not
    started moving data yet
    """
    if total == 0:
        return None
    if remaining == 0:
        progress = 100
    else:
        # Only report 100% when the job is really done
        progress = min(100 - remaining * 100 // total, 99)
    return "\r%s: [%3d %%]" % (label, progress)


def _print_progress(label, remaining, total):
    line = format_progress(label, remaining, total)
    if line is None:
        return
    sys.stderr.write(line)
    sys.stderr.flush()


def watch_job(shell, dom, label, jobfunc, verbose=False, timeout=0,
              timeout_cb=None):
    """
    Run @jobfunc in a worker thread and wait for it on the main thread.

    While waiting, a SIGINT caught by the shell aborts the domain job,
    an expired @timeout (seconds) calls @timeout_cb(shell, dom) once,
    and with @verbose the job progress is printed on stderr.

    Returns True if @jobfunc completed. An exception raised by the job
    is re-raised here
    """
    results = queue.Queue()

    def _worker():
        try:
            jobfunc()
            results.put((True, None))
        except Exception as e:
            log.debug("%s job failed", label, exc_info=True)
            results.put((False, e))

    t = threading.Thread(target=_worker, name="%s job" % label)
    t.daemon = True

    shell.int_caught = False
    start = time.monotonic()
    t.start()
    try:
        while True:
            try:
                success, error = results.get(timeout=_POLL_INTERVAL)
                break
            except queue.Empty:
                pass

            if shell.int_caught:
                shell.int_caught = False
                log.debug("%s interrupted, aborting job", label)
                dom.abortJob()

            if timeout and time.monotonic() - start > timeout:
                shell.debug(0, "%s timeout" % label)
                if timeout_cb:
                    timeout_cb(shell, dom)
                timeout = 0

            if verbose:
                try:
                    jobinfo = dom.jobInfo()
                except libvirt.libvirtError as e:
                    log.debug("Fetching %s job info failed: %s", label, e)
                    continue
                _print_progress(label, jobinfo[5], jobinfo[3])
    finally:
        t.join()

    if not success:
        raise error
    if verbose:
        _print_progress(label, 0, 1)
        sys.stderr.write("\n")
    return True
