# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""Backup agent module"""

import logging
import time

from . import version
from .funcmodule import out, format_backup_line
from .naming import Naming
from .timing import Timing
from .backupblobname import BackupBlobName
from .backupexception import (
    BackupException, DecodeException, PreconditionException, PolicyConflictException)

class BackupAgent(object):
    """The backup business logic implementation."""
    def __init__(self, backup_configuration):
        self.backup_configuration = backup_configuration

    @property
    def vm_directory(self):
        return self.backup_configuration.vm_directory

    @property
    def disk_registry(self):
        return self.backup_configuration.disk_registry

    def existing_backups(self, blob_store, container_name, service_name, vm_name, strict=False):
        """
        All backups of a VM, most recent round first. Blobs in the VM's name
        prefix which cannot be decoded are skipped, or raise when strict.
        """
        prefix = Naming.construct_blobname_prefix(service_name=service_name, vm_name=vm_name)
        existing = []
        for blob_name in blob_store.list_blobs(container_name):
            try:
                backup = BackupBlobName(blob_name)
            except DecodeException as exception:
                if blob_name.startswith(prefix):
                    if strict:
                        raise
                    logging.warning("Skipping malformed backup blob %s: %s", blob_name, exception.reason)
                continue

            if backup.belongs_to(service_name, vm_name):
                existing.append(backup)
        return Naming.sort_by_recency(existing)

    def backup(self, service_name, vm_name, storage_account, container_name, stop_vm=True):
        """Copies all disks of a VM into new blobs, returns the BackupBlobNames."""
        vm = self.vm_directory.get_vm(service_name, vm_name)
        blob_store = self.backup_configuration.blob_store(storage_account)
        blob_store.create_container_if_missing(container_name)

        today = Timing.today()
        existing = self.existing_backups(
            blob_store=blob_store, container_name=container_name,
            service_name=service_name, vm_name=vm_name, strict=True)
        sequence = Naming.next_sequence(existing, service_name, vm_name, today)

        disks = vm.disks()
        blob_names = [
            Naming.construct_blobname(service_name=service_name, vm_name=vm_name,
                                      disk_number=disk_number, date=today, sequence=sequence)
            for (disk_number, _disk) in disks
        ]
        out("Backup {backup_id} of {service}/{vm}: {count} disk(s) to {account}/{container}".format(
            backup_id=Naming.construct_backup_id(today, sequence), service=service_name, vm=vm_name,
            count=len(disks), account=storage_account, container=container_name))

        stopped_vm = False
        granted_disks = []
        try:
            if stop_vm and vm.is_running:
                out("Stopping VM {}/{}".format(service_name, vm_name))
                self.vm_directory.stop_vm(service_name, vm_name)
                stopped_vm = True
            elif vm.is_running:
                logging.warning("VM %s/%s keeps running during backup", service_name, vm_name)

            for (disk_number, disk), blob_name in zip(disks, blob_names):
                source_url = self.copy_source_url(disk, granted_disks)
                logging.info("Copy disk %d (%s) to %s", disk_number, disk.name, blob_name)
                blob_store.start_copy(source_url, container_name, blob_name)

            self.wait_for_copies(blob_store, container_name, blob_names)
        finally:
            try:
                for (disk_service_name, disk_name) in granted_disks:
                    self.disk_registry.revoke_read_access(disk_service_name, disk_name)
            finally:
                if stopped_vm:
                    out("Starting VM {}/{}".format(service_name, vm_name))
                    self.vm_directory.start_vm(service_name, vm_name)

        return [BackupBlobName(blob_name) for blob_name in blob_names]

    def copy_source_url(self, disk, granted_disks):
        """A URL the storage service can read the disk's VHD from."""
        hours = self.backup_configuration.get_source_access_hours()
        if disk.managed_disk_id:
            disk_service_name, disk_name = Naming.split_resource_id(disk.managed_disk_id)
            url = self.disk_registry.grant_read_access(disk_service_name, disk_name, hours * 3600)
            granted_disks.append((disk_service_name, disk_name))
            return url

        if not disk.blob_uri:
            raise PreconditionException("Disk {} has neither a VHD blob nor a managed disk".format(disk.name))
        account_name, source_container, source_blob = Naming.split_blob_url(disk.blob_uri)
        return self.backup_configuration.blob_store(account_name).readable_url(
            source_container, source_blob, hours)

    def wait_for_copies(self, blob_store, container_name, blob_names):
        """Blocks until every copy succeeded. There is no timeout."""
        poll_interval = self.backup_configuration.get_copy_poll_interval()
        while True:
            statuses = dict((b, blob_store.copy_status(container_name, b)) for b in blob_names)
            failed = [b for b in blob_names if statuses[b] in ("failed", "aborted")]
            if failed:
                raise BackupException("Copy of {} did not succeed: {}".format(
                    ", ".join(failed), ", ".join(statuses[b] for b in failed)))
            if all(status == "success" for status in statuses.values()):
                return
            logging.debug("Waiting for all blobs to be copied %s", statuses)
            time.sleep(poll_interval)

    def list_backups(self, service_name, vm_name, storage_account, container_name):
        """Lists backups of a VM in the given storage account."""
        blob_store = self.backup_configuration.blob_store(storage_account)
        return self.existing_backups(
            blob_store=blob_store, container_name=container_name,
            service_name=service_name, vm_name=vm_name)

    def print_backups(self, service_name, vm_name, storage_account, container_name):
        backups = self.list_backups(service_name, vm_name, storage_account, container_name)
        for backup in backups:
            print(format_backup_line(backup))
        return backups

    @staticmethod
    def check_retention_policy(keep_last, older_than_days):
        if keep_last is not None and older_than_days is not None:
            raise PolicyConflictException("Specify either the number of backups to keep or their maximum age, not both")
        if keep_last is None and older_than_days is None:
            raise BackupException("Specify either the number of backups to keep or their maximum age")
        if (keep_last is not None and keep_last < 0) or (older_than_days is not None and older_than_days < 0):
            raise BackupException("Retention values must not be negative")

    def prune_old_backups(self, service_name, vm_name, storage_account, container_name, keep_last=None, older_than_days=None):
        """
        Delete (prune) old backup rounds. Returns the deleted blob names and
        the blob names which were kept since a disk attached to a VM uses them.
        """
        BackupAgent.check_retention_policy(keep_last, older_than_days)
        blob_store = self.backup_configuration.blob_store(storage_account)
        rounds = Naming.group_rounds(self.existing_backups(
            blob_store=blob_store, container_name=container_name,
            service_name=service_name, vm_name=vm_name))

        if keep_last is not None:
            logging.warning("Keeping the latest %d backups of %s/%s", keep_last, service_name, vm_name)
            eligible = rounds[keep_last:]
        else:
            logging.warning("Deleting backups of %s/%s older than %d days", service_name, vm_name, older_than_days)
            today = Timing.today()
            eligible = [(backup_id, backups) for (backup_id, backups) in rounds
                        if Timing.is_older_than(backups[0].date, older_than_days, today)]

        disks_by_media_uri = dict()
        for disk in self.disk_registry.list_disks():
            if disk.media_uri:
                disks_by_media_uri.setdefault(Naming.normalize_blob_url(disk.media_uri), []).append(disk)

        deleted = []
        kept = []
        for backup_id, backups in eligible:
            logging.info("Pruning backup %s of %s/%s", backup_id, service_name, vm_name)
            for backup in backups:
                blob_url = Naming.normalize_blob_url(blob_store.blob_url(container_name, backup.blobname))
                disks = disks_by_media_uri.get(blob_url, [])
                attached = [d for d in disks if d.attached_to]
                if attached:
                    logging.warning("Disk %s is attached to %s, not removing %s",
                                    attached[0].name, attached[0].attached_to, backup.blobname)
                    kept.append(backup.blobname)
                    continue

                for disk in disks:
                    out("Deleting disk {}/{}".format(disk.service_name, disk.name))
                    self.disk_registry.delete_disk(disk.service_name, disk.name)
                out("Deleting {}".format(backup.blobname))
                blob_store.delete_blob(container_name, backup.blobname)
                deleted.append(backup.blobname)

        return (deleted, kept)

    @staticmethod
    def select_backup_round(day=None, sequence=None, backup_id=None):
        """
        (date, sequence) of the round to restore, (None, None) for the latest one.

            >>> BackupAgent.select_backup_round(backup_id="2024-05-01-0001")
            (datetime.date(2024, 5, 1), 1)
            >>> BackupAgent.select_backup_round(day="2024-05-01", sequence="3")
            (datetime.date(2024, 5, 1), 3)
            >>> BackupAgent.select_backup_round()
            (None, None)
        """
        if backup_id is not None and (day is not None or sequence is not None):
            raise PolicyConflictException("Specify either a backup ID or a day and sequence, not both")
        if backup_id is not None:
            return Naming.parse_backup_id(backup_id)
        if day is None and sequence is None:
            return (None, None)
        if day is None or sequence is None:
            raise BackupException("Day and sequence of a backup must be given together")

        if not hasattr(day, 'year'):
            try:
                day = Timing.parse_date(day)
            except ValueError:
                raise BackupException("Cannot parse day '{}', expected yyyy-MM-dd".format(day))
        return (day, int(sequence))

    def restore(self, backup_service_name, backup_vm_name, storage_account, container_name,
                target_service_name, target_vm_name, size, day=None, sequence=None, backup_id=None, os_type=None):
        """Creates a new VM from the disks of a backup round."""
        date, sequence = BackupAgent.select_backup_round(day=day, sequence=sequence, backup_id=backup_id)
        if self.vm_directory.vm_exists(target_service_name, target_vm_name):
            raise PreconditionException("VM {} already exists in {}".format(target_vm_name, target_service_name))

        blob_store = self.backup_configuration.blob_store(storage_account)
        rounds = Naming.group_rounds(self.existing_backups(
            blob_store=blob_store, container_name=container_name,
            service_name=backup_service_name, vm_name=backup_vm_name))
        if len(rounds) == 0:
            raise PreconditionException("No backups of {}/{} in {}/{}".format(
                backup_service_name, backup_vm_name, storage_account, container_name))

        if date is None:
            selected_id, backups = rounds[0]
            logging.info("No backup selected, using latest backup %s", selected_id)
        else:
            selected_id = Naming.construct_backup_id(date, sequence)
            matches = [b for (round_id, b) in rounds if round_id == selected_id]
            if len(matches) == 0:
                raise PreconditionException("Backup {} of {}/{} not found".format(
                    selected_id, backup_service_name, backup_vm_name))
            backups = matches[0]

        disk_numbers = [b.disk_number for b in backups]
        if 0 not in disk_numbers:
            raise PreconditionException("Backup {} has no OS disk".format(selected_id))
        if len(set(disk_numbers)) != len(disk_numbers):
            raise PreconditionException("Backup {} contains disk numbers more than once: {}".format(
                selected_id, ", ".join(b.blobname for b in backups)))

        location = self.backup_configuration.get_location()
        subnet_id = self.backup_configuration.get_restore_subnet_id()
        storage_account_id = self.backup_configuration.get_storage_account_id(storage_account)
        os_type = os_type or self.backup_configuration.get_restore_os_type()

        registered = []
        for backup in backups:
            disk_name = Naming.construct_restored_disk_name(
                vm_name=target_vm_name, disk_number=backup.disk_number,
                date=backup.date, sequence=backup.sequence)
            out("Registering disk {} from {}".format(disk_name, backup.blobname))
            disk = self.disk_registry.register_disk_from_blob(
                target_service_name, disk_name,
                blob_store.blob_url(container_name, backup.blobname),
                location, storage_account_id,
                os_type=os_type if backup.disk_number == 0 else None)
            registered.append((backup.disk_number, disk))

        nic_id = self.vm_directory.create_network_interface(
            target_service_name, "{}-nic".format(target_vm_name), location, subnet_id)

        out("Creating VM {}/{} from backup {}".format(target_service_name, target_vm_name, selected_id))
        return self.vm_directory.create_vm(
            target_service_name, target_vm_name, location, size,
            os_disk=registered[0][1], os_type=os_type,
            data_disks=registered[1:], nic_id=nic_id)

    def show_configuration(self):
        return "\n".join(self.get_configuration_printable())

    def get_configuration_printable(self):
        cfg = self.backup_configuration
        return [
            "azure.subscription_id:              {}".format(BackupAgent._value_or_error(cfg.get_subscription_id)),
            "azure.location:                     {}".format(BackupAgent._value_or_error(cfg.get_location)),
            "",
            "azure_storage_account_name:         {}".format(BackupAgent._value_or_error(cfg.get_azure_storage_account_name)),
            "azure_storage_container_name:       {}".format(cfg.azure_storage_container_name),
            "azure_storage_resource_group:       {}".format(BackupAgent._value_or_error(cfg.get_storage_resource_group)),
            "copy_poll_interval_seconds:         {}".format(cfg.get_copy_poll_interval()),
            "source_access_hours:                {}".format(cfg.get_source_access_hours()),
            "",
            "restore.subnet_id:                  {}".format(BackupAgent._value_or_error(cfg.get_restore_subnet_id)),
            "restore.os_type:                    {}".format(cfg.get_restore_os_type()),
            "script version:                     {}".format(version())
        ]

    @staticmethod
    def _value_or_error(getter):
        try:
            return getter()
        except BackupException as exception:
            return "<{}>".format(exception)
