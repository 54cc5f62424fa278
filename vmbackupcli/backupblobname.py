# coding=utf-8

from .naming import Naming
from .backupexception import DecodeException

class BackupBlobName(object):
    def __init__(self, blobname):
        self.blobname = blobname
        self.legacy_base_blobname = None
        try:
            self.identifier = Naming.parse_blobname(self.blobname)
        except DecodeException:
            if "_v_" not in self.blobname:
                raise
            self.legacy_base_blobname, self.identifier = Naming.parse_legacy_blobname(self.blobname)
        (service_name, vm_name, disk_number, date, sequence) = self.identifier
        self.service_name = service_name
        self.vm_name = vm_name
        self.disk_number = disk_number
        self.date = date
        self.sequence = sequence

    @property
    def is_legacy(self):
        return self.legacy_base_blobname is not None

    @property
    def backup_id(self):
        return Naming.construct_backup_id(self.date, self.sequence)

    def belongs_to(self, service_name, vm_name):
        return self.service_name == service_name and self.vm_name == vm_name

    def __repr__(self):
        return "BackupBlobName({!r})".format(self.blobname)

    def __eq__(self, other):
        return isinstance(other, BackupBlobName) and self.blobname == other.blobname

    def __hash__(self):
        return hash(self.blobname)
