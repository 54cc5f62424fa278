# coding=utf-8

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""Backup, list, prune and restore Azure VM disks via blob copies."""

__version__ = "0.1.0"

def version():
    """Returns the version of the backup scripts."""
    return __version__
