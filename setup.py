#!/usr/bin/env python3
#
# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.


import sys
import glob
import importlib.util
import sysconfig

import setuptools


SYSPREFIX = sysconfig.get_config_var("prefix")


def _import_buildconfig():
    # A bit of crazyness to import the buildconfig file without importing
    # the rest of virtsh, so the build process doesn't require all the
    # runtime deps to be installed
    spec = importlib.util.spec_from_file_location(
            'buildconfig', 'virtsh/buildconfig.py')
    buildconfig = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(buildconfig)
    if "libvirt" in sys.modules:
        raise RuntimeError("Found libvirt in sys.modules. setup.py should "
                "not import virtsh.")
    return buildconfig.BuildConfig


BuildConfig = _import_buildconfig()


###################
# Custom commands #
###################

class configure(setuptools.Command):
    user_options = [
        ("prefix=", None, "installation prefix"),
        ("history-size=", None,
         "Number of lines kept in the interactive history (default=500)"),
    ]
    description = "Configure the build, similar to ./configure"

    def finalize_options(self):
        pass

    def initialize_options(self):
        self.prefix = SYSPREFIX
        self.history_size = None

    def run(self):
        template = ""
        template += "[config]\n"
        template += "prefix = %s\n" % self.prefix
        if self.history_size is not None:
            template += "history_size = %s\n" % int(self.history_size)

        with open(BuildConfig.cfgpath, "w") as f:
            f.write(template)
        print("Generated %s" % BuildConfig.cfgpath)


class TestCommand(setuptools.Command):
    user_options = []
    description = "DEPRECATED: Use `pytest`."
    def finalize_options(self):
        pass
    def initialize_options(self):
        pass
    def run(self):
        sys.exit("ERROR: `test` is deprecated. Call `pytest` instead.")


class CheckPylint(setuptools.Command):
    user_options = [
        ("jobs=", "j", "use multiple processes to speed up Pylint"),
    ]
    description = "Check code using pylint and pycodestyle"

    def initialize_options(self):
        self.jobs = None

    def finalize_options(self):
        if self.jobs is not None:
            self.jobs = int(self.jobs)

    def run(self):
        import pylint.lint
        import pycodestyle

        lintfiles = [
            "setup.py",
            "tests",
            "virtsh"]

        output_format = sys.stdout.isatty() and "colorized" or "text"

        print("running pycodestyle")
        style_guide = pycodestyle.StyleGuide(
            format="pylint",
            paths=lintfiles,
            max_line_length=80,
        )
        report = style_guide.check_files()
        if style_guide.options.count:
            sys.stderr.write(str(report.total_errors) + '\n')

        print("running pylint")
        pylint_opts = [
            "--output-format=%s" % output_format,
        ]
        if self.jobs is not None:
            pylint_opts += ["--jobs=%d" % self.jobs]

        pylint.lint.Run(lintfiles + pylint_opts)


setuptools.setup(
    name="virtsh",
    version=BuildConfig.version,
    url="https://libvirt.org",
    license="GPLv2+",
    description="Interactive shell for managing libvirt guests",

    data_files=[
        ("share/virtsh", glob.glob("virtsh/build.cfg")),
    ],

    py_modules=[],
    packages=["virtsh", "virtsh.commands"],

    install_requires=[
        "libvirt-python",
        "argcomplete",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "virsh = virtsh.virsh:runcli",
        ],
    },

    cmdclass={
        'configure': configure,

        'pylint': CheckPylint,
        'test': TestCommand,
    },
)
