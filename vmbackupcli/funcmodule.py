# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

import sys
import logging

def printe(*args, **kwargs):
    """Print to STDERR."""
    print(*args, file=sys.stderr, **kwargs)

def out(message):
    """Print to STDOUT."""
    logging.info(message)
    print(message)

def format_backup_line(backup):
    """One line of the backup listing."""
    return "{service} {vm: <20} {backup_id} disk {disk:02d}  {blob}{legacy}".format(
        service=backup.service_name, vm=backup.vm_name, backup_id=backup.backup_id,
        disk=backup.disk_number, blob=backup.blobname,
        legacy={True: " (legacy)", False: ""}[backup.is_legacy])
