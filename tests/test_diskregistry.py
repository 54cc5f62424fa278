# coding=utf-8

"""Unit tests for AzureDiskRegistry."""
import unittest
import mock
from azure.mgmt.compute.models import AccessLevel, DiskCreateOption
from vmbackupcli.diskregistry import AzureDiskRegistry, DiskDescriptor

DISK_ID = "/subscriptions/sub/resourceGroups/svcB/providers/Microsoft.Compute/disks/web2-disk00-2024-05-01-0000"
VM_ID = "/subscriptions/sub/resourceGroups/svcA/providers/Microsoft.Compute/virtualMachines/web1"

def managed_disk(disk_id=DISK_ID, source_uri="https://backupsa.blob.core.windows.net/vhd-backups/a.vhd", managed_by=None):
    disk = mock.Mock()
    disk.id = disk_id
    disk.name = disk_id.split("/")[-1]
    disk.creation_data.source_uri = source_uri
    disk.managed_by = managed_by
    return disk

def unmanaged_vm():
    os_disk = mock.Mock()
    os_disk.name = "web1-os"
    os_disk.vhd.uri = "https://vmsa.blob.core.windows.net/vhds/web1-os.vhd"
    data_disk = mock.Mock()
    data_disk.name = "web1-data"
    data_disk.vhd = None
    vm = mock.Mock()
    vm.id = VM_ID
    vm.storage_profile.os_disk = os_disk
    vm.storage_profile.data_disks = [data_disk]
    return vm

class TestAzureDiskRegistry(unittest.TestCase):
    """Unit tests for class AzureDiskRegistry."""

    def setUp(self):
        self.compute = mock.MagicMock()
        self.registry = AzureDiskRegistry(self.compute)

    def test_managed_disk_descriptor(self):
        descriptor = AzureDiskRegistry.managed_disk_descriptor(managed_disk(managed_by=VM_ID))
        self.assertEqual(descriptor, DiskDescriptor(
            name="web2-disk00-2024-05-01-0000", service_name="svcB", disk_id=DISK_ID,
            media_uri="https://backupsa.blob.core.windows.net/vhd-backups/a.vhd", attached_to=VM_ID))

    def test_unmanaged_disks_are_attached(self):
        descriptors = AzureDiskRegistry.unmanaged_disk_descriptors(unmanaged_vm())
        self.assertEqual(descriptors, [DiskDescriptor(
            name="web1-os", service_name="svcA", disk_id=None,
            media_uri="https://vmsa.blob.core.windows.net/vhds/web1-os.vhd", attached_to=VM_ID)])

    def test_list_disks(self):
        self.compute.disks.list.return_value = [managed_disk()]
        self.compute.virtual_machines.list_all.return_value = [unmanaged_vm()]
        self.assertEqual([d.name for d in self.registry.list_disks()], ["web2-disk00-2024-05-01-0000", "web1-os"])

        self.compute.disks.list_by_resource_group.return_value = []
        self.compute.virtual_machines.list.return_value = []
        self.assertEqual(self.registry.list_disks("svcB"), [])
        self.compute.disks.list_by_resource_group.assert_called_once_with("svcB")

    def test_register_disk_from_blob(self):
        self.compute.disks.begin_create_or_update.return_value.result.return_value = managed_disk()
        descriptor = self.registry.register_disk_from_blob(
            "svcB", "web2-disk00-2024-05-01-0000", "https://backupsa.blob.core.windows.net/vhd-backups/a.vhd",
            "westeurope", "storage-account-id", os_type="Windows")

        (service_name, disk_name, disk) = self.compute.disks.begin_create_or_update.call_args[0]
        self.assertEqual((service_name, disk_name), ("svcB", "web2-disk00-2024-05-01-0000"))
        self.assertEqual(disk.location, "westeurope")
        self.assertEqual(disk.os_type, "Windows")
        self.assertEqual(disk.creation_data.create_option, DiskCreateOption.IMPORT)
        self.assertEqual(disk.creation_data.source_uri, "https://backupsa.blob.core.windows.net/vhd-backups/a.vhd")
        self.assertEqual(disk.creation_data.storage_account_id, "storage-account-id")
        self.assertEqual(descriptor.disk_id, DISK_ID)

    def test_read_access(self):
        self.compute.disks.begin_grant_access.return_value.result.return_value.access_sas = "https://md-xyz/abcd?sig=1"
        self.assertEqual(self.registry.grant_read_access("svcA", "web1-os", 3600.0), "https://md-xyz/abcd?sig=1")
        (_, _, access_data) = self.compute.disks.begin_grant_access.call_args[0]
        self.assertEqual(access_data.access, AccessLevel.READ)
        self.assertEqual(access_data.duration_in_seconds, 3600)

        self.registry.revoke_read_access("svcA", "web1-os")
        self.compute.disks.begin_revoke_access.assert_called_once_with("svcA", "web1-os")
