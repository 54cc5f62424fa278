# coding=utf-8

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""Exceptions raised by the backup scripts."""

class BackupException(Exception):
    """Base class for all errors which terminate a backup script."""

    @property
    def message(self):
        return str(self)

class PreconditionException(BackupException):
    """A VM, service or storage account is missing (or exists when it should not)."""

class NamingConventionException(BackupException):
    """A blob name does not follow the backup naming convention."""

class EncodingException(NamingConventionException):
    """The parts of a backup identifier cannot be encoded into a blob name."""

class DecodeException(NamingConventionException):
    """A blob name cannot be decoded into a backup identifier."""

    def __init__(self, blob_name, reason="malformed name"):
        super(DecodeException, self).__init__(
            "Cannot decode blob name '{}': {}".format(blob_name, reason))
        self.blob_name = blob_name
        self.reason = reason

class PolicyConflictException(BackupException):
    """Mutually exclusive parameters have been supplied together."""
