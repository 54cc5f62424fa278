# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

"""Blob store module"""

import logging
import datetime

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, BlobSasPermissions, generate_blob_sas

from .backupexception import PreconditionException

class AzureBlobStore(object):
    """The blobs of a single storage account."""

    def __init__(self, account_name, credential, endpoint_suffix="core.windows.net", service_client=None):
        self.account_name = account_name
        self.account_url = "https://{account_name}.blob.{suffix}".format(
            account_name=account_name, suffix=endpoint_suffix)
        self.service_client = service_client or BlobServiceClient(
            account_url=self.account_url, credential=credential)

    def blob_client(self, container_name, blob_name):
        return self.service_client.get_blob_client(container=container_name, blob=blob_name)

    def blob_url(self, container_name, blob_name):
        return self.blob_client(container_name, blob_name).url

    def list_blobs(self, container_name, prefix=None):
        container = self.service_client.get_container_client(container_name)
        try:
            return [blob.name for blob in container.list_blobs(name_starts_with=prefix)]
        except ResourceNotFoundError:
            raise PreconditionException("Container {} does not exist in storage account {}".format(
                container_name, self.account_name))

    def create_container_if_missing(self, container_name):
        try:
            self.service_client.create_container(container_name)
            logging.info("Created container %s in storage account %s", container_name, self.account_name)
        except ResourceExistsError:
            pass

    def readable_url(self, container_name, blob_name, hours):
        """A read-only SAS URL for a blob, signed with a user delegation key."""
        start = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=5)
        expiry = start + datetime.timedelta(hours=hours)
        delegation_key = self.service_client.get_user_delegation_key(
            key_start_time=start, key_expiry_time=expiry)
        sas_token = generate_blob_sas(
            account_name=self.account_name,
            container_name=container_name,
            blob_name=blob_name,
            user_delegation_key=delegation_key,
            permission=BlobSasPermissions(read=True),
            start=start,
            expiry=expiry)
        return "{url}?{sas}".format(url=self.blob_url(container_name, blob_name), sas=sas_token)

    def start_copy(self, source_url, container_name, blob_name):
        """Starts a server-side copy, returns the handle to poll for its status."""
        self.blob_client(container_name, blob_name).start_copy_from_url(source_url)
        return blob_name

    def copy_status(self, container_name, blob_name):
        properties = self.blob_client(container_name, blob_name).get_blob_properties()
        return properties.copy.status

    def delete_blob(self, container_name, blob_name):
        self.blob_client(container_name, blob_name).delete_blob()
