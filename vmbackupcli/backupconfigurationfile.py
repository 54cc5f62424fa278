# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

import re
import logging
import os.path
from .backupexception import BackupException, PreconditionException

class BackupConfigurationFile(object):
    """
    A configuration file of 'key = value' or 'key: value' lines. Lines
    starting with '#' and blank lines are ignored. The file is read once.
    """

    comment_re = re.compile(r"^\s*(#|$)")

    def __init__(self, filename):
        if not os.path.isfile(filename):
            raise BackupException("Cannot find configuration file {}".format(filename))
        self.filename = filename
        self.values = BackupConfigurationFile.read_key_value_file(filename=self.filename)
        logging.debug("Configuration keys %s", sorted(self.values.keys()))

    def get_value(self, key):
        if key not in self.values:
            raise BackupException("Cannot read value {} from config file '{}'".format(key, self.filename))
        return self.values[key]

    def get_value_or_default(self, key, default):
        return self.values.get(key, default)

    def key_exists(self, key):
        return key in self.values

    def require(self, key, purpose=None):
        """The value of a key which has no default."""
        if key not in self.values:
            raise PreconditionException("'{key}' missing in '{filename}'{purpose}".format(
                key=key, filename=self.filename,
                purpose=", {}".format(purpose) if purpose else ""))
        return self.values[key]

    @staticmethod
    def read_key_value_file(filename):
        values = dict()
        with open(filename, mode='rt') as config_file:
            for line_number, line in enumerate(config_file, start=1):
                if BackupConfigurationFile.comment_re.match(line):
                    continue
                parts = re.split(":|=", line, maxsplit=1)
                if len(parts) != 2:
                    raise BackupException("Error parsing config file {}, line {}: {!r}".format(
                        filename, line_number, line.strip()))
                values[parts[0].strip()] = parts[1].strip()
        return values
