# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""VM directory module"""

import logging
from collections import namedtuple

from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.compute.models import (
    DataDisk, DiskCreateOptionTypes, HardwareProfile, ManagedDiskParameters,
    NetworkInterfaceReference, NetworkProfile, OSDisk, StorageProfile, VirtualMachine)
from azure.mgmt.network.models import NetworkInterface, NetworkInterfaceIPConfiguration, Subnet

from .naming import Naming
from .backupexception import PreconditionException

DiskReference = namedtuple('DiskReference', ['name', 'lun', 'blob_uri', 'managed_disk_id'])

class VmDescriptor(object):
    """A VM, its power state and its disks."""

    def __init__(self, service_name, name, power_state, os_disk, data_disks, location=None, vm_id=None):
        self.service_name = service_name
        self.name = name
        self.power_state = power_state
        self.os_disk = os_disk
        self.data_disks = sorted(data_disks, key=lambda d: d.lun)
        self.location = location
        self.vm_id = vm_id

    @property
    def is_running(self):
        return self.power_state == "running"

    def disks(self):
        """(disk_number, DiskReference) pairs, 0 is the OS disk, data disks follow in LUN order."""
        return [(0, self.os_disk)] + [(index + 1, disk) for index, disk in enumerate(self.data_disks)]

    def __repr__(self):
        return "VmDescriptor({}/{}, {})".format(self.service_name, self.name, self.power_state)

class AzureVmDirectory(object):
    """Looks up, stops, starts and creates Azure VMs."""

    def __init__(self, compute_client, network_client):
        self.compute_client = compute_client
        self.network_client = network_client

    @staticmethod
    def power_state(instance_view):
        """The power state of an instance view, e.g. 'running' for status code 'PowerState/running'."""
        if instance_view is None:
            return "unknown"
        for status in instance_view.statuses or []:
            if status.code and status.code.startswith("PowerState/"):
                return status.code.split("/", 1)[1]
        return "unknown"

    @staticmethod
    def disk_reference(disk, lun):
        return DiskReference(
            name=disk.name,
            lun=lun,
            blob_uri=disk.vhd.uri if disk.vhd is not None else None,
            managed_disk_id=disk.managed_disk.id if disk.managed_disk is not None else None)

    @staticmethod
    def to_descriptor(vm, service_name=None):
        if service_name is None:
            service_name, _ = Naming.split_resource_id(vm.id)
        storage_profile = vm.storage_profile
        return VmDescriptor(
            service_name=service_name,
            name=vm.name,
            power_state=AzureVmDirectory.power_state(vm.instance_view),
            os_disk=AzureVmDirectory.disk_reference(storage_profile.os_disk, None),
            data_disks=[AzureVmDirectory.disk_reference(d, d.lun) for d in storage_profile.data_disks or []],
            location=vm.location,
            vm_id=vm.id)

    def get_vm(self, service_name, vm_name):
        try:
            vm = self.compute_client.virtual_machines.get(service_name, vm_name, expand='instanceView')
        except ResourceNotFoundError:
            raise PreconditionException("VM {} does not exist in {}".format(vm_name, service_name))
        return AzureVmDirectory.to_descriptor(vm, service_name)

    def vm_exists(self, service_name, vm_name):
        try:
            self.compute_client.virtual_machines.get(service_name, vm_name)
            return True
        except ResourceNotFoundError:
            return False

    def list_vms(self, service_name=None):
        if service_name:
            vms = self.compute_client.virtual_machines.list(service_name)
        else:
            vms = self.compute_client.virtual_machines.list_all()
        return [AzureVmDirectory.to_descriptor(vm, service_name) for vm in vms]

    def stop_vm(self, service_name, vm_name):
        # deallocate (instead of power off) releases the disks for read access
        logging.info("Deallocating VM %s/%s", service_name, vm_name)
        self.compute_client.virtual_machines.begin_deallocate(service_name, vm_name).result()

    def start_vm(self, service_name, vm_name):
        logging.info("Starting VM %s/%s", service_name, vm_name)
        self.compute_client.virtual_machines.begin_start(service_name, vm_name).result()

    def create_network_interface(self, service_name, nic_name, location, subnet_id):
        logging.info("Creating network interface %s/%s in subnet %s", service_name, nic_name, subnet_id)
        parameters = NetworkInterface(
            location=location,
            ip_configurations=[
                NetworkInterfaceIPConfiguration(name="ipconfig1", subnet=Subnet(id=subnet_id))
            ])
        poller = self.network_client.network_interfaces.begin_create_or_update(
            service_name, nic_name, parameters)
        return poller.result().id

    def create_vm(self, service_name, vm_name, location, size, os_disk, os_type, data_disks, nic_id):
        """
        Creates a VM on existing managed disks. os_disk is a DiskDescriptor,
        data_disks a list of (lun, DiskDescriptor) pairs.
        """
        logging.info("Creating VM %s/%s (%s) in %s", service_name, vm_name, size, location)
        parameters = VirtualMachine(
            location=location,
            hardware_profile=HardwareProfile(vm_size=size),
            storage_profile=StorageProfile(
                os_disk=OSDisk(
                    name=os_disk.name,
                    os_type=os_type,
                    create_option=DiskCreateOptionTypes.ATTACH,
                    managed_disk=ManagedDiskParameters(id=os_disk.disk_id)),
                data_disks=[
                    DataDisk(
                        lun=lun,
                        name=disk.name,
                        create_option=DiskCreateOptionTypes.ATTACH,
                        managed_disk=ManagedDiskParameters(id=disk.disk_id))
                    for (lun, disk) in data_disks
                ]),
            network_profile=NetworkProfile(
                network_interfaces=[NetworkInterfaceReference(id=nic_id, primary=True)]))
        poller = self.compute_client.virtual_machines.begin_create_or_update(
            service_name, vm_name, parameters)
        return AzureVmDirectory.to_descriptor(poller.result(), service_name)
