# coding=utf-8
# pylint: disable=c0301

# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Instance metadata (IMDS) of the VM the tool runs on."""

import json
import logging
import os
import urllib.request
from .backupexception import BackupException

IMDS_ADDRESS = "169.254.169.254"

class AzureVMInstanceMetadata(object):
    """
    The 'compute' section of the instance metadata document supplies defaults
    for the subscription and location. The document is requested once, on
    first access.
    """

    @staticmethod
    def set_no_proxy_for_instance_metadata_endpoint():
        # IMDS is link-local and never reachable through an HTTP proxy
        keys = [key for key in ("NO_PROXY", "no_proxy") if key in os.environ] or ["NO_PROXY"]
        for key in keys:
            hosts = [h for h in os.environ.get(key, "").split(",") if h]
            if IMDS_ADDRESS not in hosts:
                os.environ[key] = ",".join(hosts + [IMDS_ADDRESS])

    @staticmethod
    def request_metadata(api_version="2021-02-01"):
        AzureVMInstanceMetadata.set_no_proxy_for_instance_metadata_endpoint()
        url = "http://{address}/metadata/instance?api-version={version}".format(
            address=IMDS_ADDRESS, version=api_version)
        logging.debug("Requesting instance metadata from %s", url)
        request = urllib.request.Request(url, headers={"Metadata": "true"})
        try:
            with urllib.request.urlopen(request, timeout=5) as response:
                return json.loads(response.read().decode("utf-8"))
        except Exception as exception:
            raise BackupException("Failed to connect to Azure instance metadata endpoint {}:\n{}".format(
                url, exception))

    @staticmethod
    def create_instance():
        return AzureVMInstanceMetadata(AzureVMInstanceMetadata.request_metadata)

    def __init__(self, request):
        self.request = request
        self._document = None

    @property
    def document(self):
        if self._document is None:
            self._document = self.request()
        return self._document

    def compute_value(self, key):
        compute = self.document.get("compute", {})
        if key not in compute:
            raise BackupException("Cannot read compute/{} from instance metadata endpoint".format(key))
        return str(compute[key])

    @property
    def subscription_id(self):
        return self.compute_value("subscriptionId")

    @property
    def location(self):
        return self.compute_value("location")
