# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""Naming module"""

import re
from collections import namedtuple
from itertools import groupby

from urllib.parse import urlparse, urlunparse, unquote

from .timing import Timing
from .backupexception import EncodingException, DecodeException, PreconditionException

BackupIdentifier = namedtuple(
    'BackupIdentifier',
    ['service_name', 'vm_name', 'disk_number', 'date', 'sequence'])

class Naming(object):
    """Naming utilities"""

    max_sequence = 9999
    max_disk_number = 99
    forbidden_name_parts = ["_b_", "_d_", "_v_"]

    blobname_re = re.compile(
        r'^(?P<service>.+)-(?P<vm>[^-]+?)_b_(?P<disk>\d{2})_d_(?P<date>\d{4}-\d{2}-\d{2})-(?P<seq>\d{4})\.vhd$')
    legacy_blobname_re = re.compile(
        r'^(?P<base>.+?)_v_(?P<service>.+)-(?P<vm>[^-]+?)_b_(?P<date>\d{4}-\d{2}-\d{2})-(?P<seq>\d{4})\.vhd$')
    backup_id_re = re.compile(r'^(?P<date>\d{4}-\d{2}-\d{2})-(?P<seq>\d{4})$')

    @staticmethod
    def _check_name(kind, value):
        if not value:
            raise EncodingException("The {} must not be empty".format(kind))
        for part in Naming.forbidden_name_parts:
            if part in value:
                raise EncodingException("The {} '{}' must not contain '{}'".format(kind, value, part))

    @staticmethod
    def construct_blobname(service_name, vm_name, disk_number, date, sequence):
        """
        Creates a blob name

            >>> import datetime
            >>> Naming.construct_blobname("svcA", "web1", 0, datetime.date(2024, 5, 1), 1)
            'svcA-web1_b_00_d_2024-05-01-0001.vhd'
        """
        Naming._check_name("service name", service_name)
        Naming._check_name("VM name", vm_name)
        if "-" in vm_name:
            raise EncodingException("The VM name '{}' must not contain '-'".format(vm_name))
        if not 0 <= int(disk_number) <= Naming.max_disk_number:
            raise EncodingException("Disk number {} out of range".format(disk_number))
        if int(sequence) < 0:
            raise EncodingException("Negative sequence {}".format(sequence))
        if int(sequence) > Naming.max_sequence:
            raise EncodingException("sequence overflow: {} backups on {} for {}-{}".format(
                sequence, Timing.format_date(date), service_name, vm_name))

        return "{service}-{vm}_b_{disk:02d}_d_{date}-{seq:04d}.vhd".format(
            service=service_name, vm=vm_name, disk=int(disk_number),
            date=Timing.format_date(date), seq=int(sequence))

    @staticmethod
    def construct_blobname_prefix(service_name, vm_name):
        return "{service}-{vm}_b_".format(service=service_name, vm=vm_name)

    @staticmethod
    def _parse_date(blob_name, date_str):
        try:
            return Timing.parse_date(date_str)
        except ValueError:
            raise DecodeException(blob_name, "invalid date '{}'".format(date_str))

    @staticmethod
    def parse_blobname(blob_name):
        """Parses a blob name."""
        match = Naming.blobname_re.match(blob_name)
        if match is None:
            raise DecodeException(blob_name)

        return BackupIdentifier(
            service_name=match.group('service'),
            vm_name=match.group('vm'),
            disk_number=int(match.group('disk')),
            date=Naming._parse_date(blob_name, match.group('date')),
            sequence=int(match.group('seq')))

    @staticmethod
    def parse_legacy_blobname(blob_name):
        """
        Parses a blob name written by the old scripts, which copied only the OS
        disk and prefixed the backup with the name of the source blob.

            >>> Naming.parse_legacy_blobname("web1-os_v_svcA-web1_b_2014-02-03-0002.vhd")
            ('web1-os', BackupIdentifier(service_name='svcA', vm_name='web1', disk_number=0, date=datetime.date(2014, 2, 3), sequence=2))
        """
        match = Naming.legacy_blobname_re.match(blob_name)
        if match is None:
            raise DecodeException(blob_name)

        return (match.group('base'), BackupIdentifier(
            service_name=match.group('service'),
            vm_name=match.group('vm'),
            disk_number=0,
            date=Naming._parse_date(blob_name, match.group('date')),
            sequence=int(match.group('seq'))))

    @staticmethod
    def construct_backup_id(date, sequence):
        return "{date}-{seq:04d}".format(date=Timing.format_date(date), seq=int(sequence))

    @staticmethod
    def parse_backup_id(backup_id):
        """
        Splits a composite backup ID into date and sequence.

            >>> Naming.parse_backup_id("2024-05-01-0013")
            (datetime.date(2024, 5, 1), 13)
        """
        match = Naming.backup_id_re.match(backup_id)
        if match is None:
            raise DecodeException(backup_id, "not a backup ID of the form yyyy-MM-dd-NNNN")
        return (Naming._parse_date(backup_id, match.group('date')), int(match.group('seq')))

    @staticmethod
    def construct_restored_disk_name(vm_name, disk_number, date, sequence):
        """Name of the managed disk which is registered from a backup blob."""
        return "{vm}-disk{disk:02d}-{backup_id}".format(
            vm=vm_name, disk=int(disk_number),
            backup_id=Naming.construct_backup_id(date, sequence))

    @staticmethod
    def next_sequence(identifiers, service_name, vm_name, date):
        """
        One past the highest sequence number of the given day, or 0.

            >>> import datetime
            >>> day = datetime.date(2024, 5, 1)
            >>> Naming.next_sequence([], "svcA", "web1", day)
            0
            >>> Naming.next_sequence([BackupIdentifier("svcA", "web1", 0, day, s) for s in (0, 1, 3)], "svcA", "web1", day)
            4
        """
        sequences = [i.sequence for i in identifiers
                     if i.service_name == service_name and i.vm_name == vm_name and i.date == date]
        if len(sequences) == 0:
            return 0
        return max(sequences) + 1

    @staticmethod
    def sort_by_recency(items, selector=lambda x: x):
        """Most recent backup round first, the order within one round is preserved."""
        return sorted(items, key=lambda x: (selector(x).date, selector(x).sequence), reverse=True)

    @staticmethod
    def group_rounds(items, selector=lambda x: x):
        """
        Groups items by backup round, most recent round first. Returns a list
        of (backup_id, items) pairs, items ordered by disk number.
        """
        round_key = lambda x: (selector(x).date, selector(x).sequence,
                               selector(x).service_name, selector(x).vm_name)
        rounds = []
        for key, values in groupby(sorted(items, key=round_key, reverse=True), key=round_key):
            values = sorted(values, key=lambda x: selector(x).disk_number)
            rounds.append((Naming.construct_backup_id(key[0], key[1]), values))
        return rounds

    @staticmethod
    def split_blob_url(blob_url):
        """
        Splits a blob URL into storage account, container and blob name.

            >>> Naming.split_blob_url("https://sa1.blob.core.windows.net/vhds/web1-os.vhd")
            ('sa1', 'vhds', 'web1-os.vhd')
        """
        parsed = urlparse(blob_url)
        if not parsed.netloc:
            raise PreconditionException("'{}' is not a blob URL".format(blob_url))
        account_name = parsed.netloc.split('.')[0]
        parts = [p for p in parsed.path.split('/') if p]
        if len(parts) < 2:
            raise PreconditionException(
                "Blob URL '{}' does not name a container and a blob".format(blob_url))
        if len(parts) > 2:
            raise PreconditionException(
                "Cannot determine the container of '{}', disk blob is nested in a virtual directory".format(blob_url))
        return (account_name, unquote(parts[0]), unquote(parts[1]))

    @staticmethod
    def split_resource_id(resource_id):
        """
        Resource group and name of an Azure resource ID.

            >>> Naming.split_resource_id("/subscriptions/x/resourceGroups/svcA/providers/Microsoft.Compute/disks/web1-os")
            ('svcA', 'web1-os')
        """
        parts = [p for p in resource_id.split('/') if p]
        lower_parts = [p.lower() for p in parts]
        if 'resourcegroups' not in lower_parts or len(parts) < 2:
            raise PreconditionException("'{}' is not an Azure resource ID".format(resource_id))
        return (parts[lower_parts.index('resourcegroups') + 1], parts[-1])

    @staticmethod
    def normalize_blob_url(blob_url):
        """
            >>> Naming.normalize_blob_url("HTTPS://SA1.blob.core.windows.net/vhds/a%20b.vhd?sv=x")
            'https://sa1.blob.core.windows.net/vhds/a b.vhd'
        """
        parsed = urlparse(blob_url)
        return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), unquote(parsed.path), '', '', ''))
