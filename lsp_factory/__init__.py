"""lsp_factory package root.

Deploy LUKSO universal profiles: an LSP0 account, its LSP6 key manager
and an LSP1 universal receiver delegate.

See :py:func:`lsp_factory.profile.deploy_universal_profile`.
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    # https://stackoverflow.com/a/1093331/315168
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"lsp-factory-py needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
