# coding=utf-8
"""Backup configuration module"""

import os
import logging
from azure.identity import DefaultAzureCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from .azurevminstancemetadata import AzureVMInstanceMetadata
from .backupconfigurationfile import BackupConfigurationFile
from .blobstore import AzureBlobStore
from .diskregistry import AzureDiskRegistry
from .vmdirectory import AzureVmDirectory

class BackupConfiguration(object):
    """Access to the backup configuration."""

    default_container_name = "vhd-backups"
    default_endpoint_suffix = "core.windows.net"

    def __init__(self, config_filename, instance_metadata=None):
        self.config_file = BackupConfigurationFile(filename=config_filename)
        self.instance_metadata = instance_metadata or AzureVMInstanceMetadata.create_instance()
        self._credential = None
        self._vm_directory = None
        self._disk_registry = None
        self._blob_stores = dict()

    def config_file_value(self, name):
        """Get value from tool-specific configuration."""
        return self.config_file.get_value(name)

    def environment_value(self, name):
        """Get value from OS environment variable."""
        return os.environ.get(name)

    def get_subscription_id(self):
        """
        Get Azure Subscription ID from the configuration file, the
        AZURE_SUBSCRIPTION_ID environment variable, or the instance metadata.
        """
        if self.config_file.key_exists("azure.subscription_id"):
            return self.config_file_value("azure.subscription_id")
        subscription_id = self.environment_value("AZURE_SUBSCRIPTION_ID")
        if subscription_id:
            return subscription_id
        return self.instance_metadata.subscription_id

    def get_location(self):
        """Get location for restored disks and VMs."""
        if self.config_file.key_exists("azure.location"):
            return self.config_file_value("azure.location")
        return self.instance_metadata.location

    def get_azure_storage_account_name(self):
        return self.config_file.require("azure.storage.account_name", "and no storage account given")

    @property
    def azure_storage_container_name(self):
        """
        Get storage container name. It can be specified explicitly in the
        configuration file, otherwise defaults to 'vhd-backups'.
        """
        return self.config_file.get_value_or_default(
            "azure.storage.container_name", BackupConfiguration.default_container_name)

    def get_storage_resource_group(self):
        return self.config_file.require("azure.storage.resource_group", "cannot import disks")

    def get_storage_account_id(self, account_name):
        return "/subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Storage/storageAccounts/{account}".format(
            sub=self.get_subscription_id(), rg=self.get_storage_resource_group(), account=account_name)

    def get_endpoint_suffix(self):
        return self.config_file.get_value_or_default(
            "azure.storage.endpoint_suffix", BackupConfiguration.default_endpoint_suffix)

    def get_copy_poll_interval(self):
        """Seconds between two checks of the copy status."""
        return float(self.config_file.get_value_or_default("copy_poll_interval_seconds", "10"))

    def get_source_access_hours(self):
        """Hours the read access to the source disks is valid."""
        return int(self.config_file.get_value_or_default("source_access_hours", "24"))

    def get_restore_subnet_id(self):
        return self.config_file.require("restore.subnet_id", "cannot create network interface")

    def get_restore_os_type(self):
        return self.config_file.get_value_or_default("restore.os_type", "Windows")

    @property
    def credential(self):
        if not self._credential:
            self._credential = DefaultAzureCredential()
        return self._credential

    @property
    def vm_directory(self):
        if not self._vm_directory:
            subscription_id = self.get_subscription_id()
            self._vm_directory = AzureVmDirectory(
                compute_client=ComputeManagementClient(self.credential, subscription_id),
                network_client=NetworkManagementClient(self.credential, subscription_id))
        return self._vm_directory

    @property
    def disk_registry(self):
        if not self._disk_registry:
            self._disk_registry = AzureDiskRegistry(
                compute_client=ComputeManagementClient(self.credential, self.get_subscription_id()))
        return self._disk_registry

    def blob_store(self, account_name):
        """The blob store of the given storage account."""
        if account_name not in self._blob_stores:
            logging.debug("Connecting to storage account %s", account_name)
            self._blob_stores[account_name] = AzureBlobStore(
                account_name=account_name,
                credential=self.credential,
                endpoint_suffix=self.get_endpoint_suffix())
        return self._blob_stores[account_name]
