# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""Disk registry module"""

import logging
from collections import namedtuple

from azure.mgmt.compute.models import AccessLevel, CreationData, Disk, DiskCreateOption, GrantAccessData

from .naming import Naming

DiskDescriptor = namedtuple(
    'DiskDescriptor',
    ['name', 'service_name', 'disk_id', 'media_uri', 'attached_to'])

class AzureDiskRegistry(object):
    """
    Managed disks, and the VHD blobs which unmanaged VM disks are running on.
    A descriptor's media_uri is the blob a disk has been imported from (or
    runs on), attached_to the ID of the VM using it.
    """

    def __init__(self, compute_client):
        self.compute_client = compute_client

    @staticmethod
    def managed_disk_descriptor(disk):
        media_uri = None
        if disk.creation_data is not None:
            media_uri = disk.creation_data.source_uri
        service_name, _ = Naming.split_resource_id(disk.id)
        return DiskDescriptor(
            name=disk.name, service_name=service_name, disk_id=disk.id,
            media_uri=media_uri, attached_to=disk.managed_by)

    @staticmethod
    def unmanaged_disk_descriptors(vm):
        service_name, _ = Naming.split_resource_id(vm.id)
        storage_profile = vm.storage_profile
        disks = [storage_profile.os_disk] + list(storage_profile.data_disks or [])
        return [
            DiskDescriptor(name=disk.name, service_name=service_name, disk_id=None,
                           media_uri=disk.vhd.uri, attached_to=vm.id)
            for disk in disks if disk is not None and disk.vhd is not None
        ]

    def list_disks(self, service_name=None):
        if service_name:
            managed = self.compute_client.disks.list_by_resource_group(service_name)
            vms = self.compute_client.virtual_machines.list(service_name)
        else:
            managed = self.compute_client.disks.list()
            vms = self.compute_client.virtual_machines.list_all()

        result = [AzureDiskRegistry.managed_disk_descriptor(disk) for disk in managed]
        for vm in vms:
            result.extend(AzureDiskRegistry.unmanaged_disk_descriptors(vm))
        return result

    def register_disk_from_blob(self, service_name, disk_name, blob_uri, location, storage_account_id, os_type=None):
        """Imports a VHD blob as managed disk. Disks with an os_type are bootable."""
        logging.info("Register disk %s/%s from %s", service_name, disk_name, blob_uri)
        disk = Disk(
            location=location,
            os_type=os_type,
            creation_data=CreationData(
                create_option=DiskCreateOption.IMPORT,
                source_uri=blob_uri,
                storage_account_id=storage_account_id))
        poller = self.compute_client.disks.begin_create_or_update(service_name, disk_name, disk)
        return AzureDiskRegistry.managed_disk_descriptor(poller.result())

    def delete_disk(self, service_name, disk_name):
        logging.info("Delete disk %s/%s", service_name, disk_name)
        self.compute_client.disks.begin_delete(service_name, disk_name).result()

    def grant_read_access(self, service_name, disk_name, seconds):
        """Returns a SAS URL to read a managed disk's VHD."""
        poller = self.compute_client.disks.begin_grant_access(
            service_name, disk_name,
            GrantAccessData(access=AccessLevel.READ, duration_in_seconds=int(seconds)))
        return poller.result().access_sas

    def revoke_read_access(self, service_name, disk_name):
        self.compute_client.disks.begin_revoke_access(service_name, disk_name).result()
