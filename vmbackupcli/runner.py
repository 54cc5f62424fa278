import logging
import argparse
import pid
import sys
import os
import getpass
import socket
import os.path

from .funcmodule import out
from .backupagent import BackupAgent
from .backupconfiguration import BackupConfiguration
from .backupexception import BackupException
from . import version

class Runner(object):
    @staticmethod
    def configure_logging():
        logging.basicConfig(
            filename="vmbackupcli.log",
            level=logging.DEBUG,
            format="%(asctime)-15s pid-%(process)d line-%(lineno)d %(levelname)s: \"%(message)s\""
            )
        logging.getLogger('azure').setLevel(logging.FATAL)

    @staticmethod
    def arg_parser():
        parser = argparse.ArgumentParser(prog="vmbackupcli")
        parser.add_argument("-c",  "--config", help="the path to the config file")
        parser.add_argument("-x",  "--show-configuration", help="Shows the configuration values", action="store_true")

        parser.add_argument("-b",  "--backup", help="Copy all disks of a VM into a new backup", action="store_true")
        parser.add_argument("-l",  "--list-backups", help="Lists the backups of a VM", action="store_true")
        parser.add_argument("-p",  "--prune-old-backups", help="Removes old backups of a VM (requires --keep-last or --older-than-days)", action="store_true")
        parser.add_argument("-r",  "--restore", help="Creates a new VM from a backup", action="store_true")

        parser.add_argument("-s",  "--service", help="The service (resource group) of the backed up VM")
        parser.add_argument("-n",  "--vm-name", help="The name of the backed up VM")
        parser.add_argument("-a",  "--storage-account", help="The storage account holding the backups")
        parser.add_argument("-k",  "--container", help="The container holding the backups")
        parser.add_argument("--online", help="Do not stop a running VM during backup", action="store_true")

        parser.add_argument("--keep-last", type=int, help="Prune all but the latest N backups")
        parser.add_argument("--older-than-days", type=int, help="Prune backups older than D days")

        parser.add_argument("--target-service", help="The service (resource group) of the restored VM")
        parser.add_argument("--target-vm-name", help="The name of the restored VM")
        parser.add_argument("--size", help="The size of the restored VM, e.g. Standard_D2s_v3")
        parser.add_argument("--day", help="The day of the backup to restore (yyyy-MM-dd)")
        parser.add_argument("--sequence", type=int, help="The sequence number of the backup on that day")
        parser.add_argument("--backup-id", help="The backup to restore as yyyy-MM-dd-NNNN")
        parser.add_argument("--os-type", help="The OS type of the restored VM (Windows or Linux)")
        return parser

    @staticmethod
    def log_script_invocation():
        return ", ".join([
            "Script version v{}".format(version()),
            "Script arguments: {}".format(str(sys.argv)),
            "Current directory: {}".format(os.getcwd()),
            "User: {}".format(getpass.getuser()),
            "Hostname: {}".format(socket.gethostname()),
            "ProcessID: {}".format(os.getpid()),
            "Parent ProcessID: {}".format(os.getppid())
        ])

    @staticmethod
    def get_config_file(args, parser):
        if args.config:
            config_file = os.path.abspath(args.config)
            if not os.path.isfile(config_file):
                raise BackupException("Cannot find configuration {}".format(config_file))

            return config_file
        else:
            parser.print_help()
            raise BackupException("Missing --config")

    @staticmethod
    def require(args, *names):
        missing = ["--" + name.replace("_", "-") for name in names if getattr(args, name) is None]
        if missing:
            raise BackupException("Missing argument(s) {}".format(", ".join(missing)))

    @staticmethod
    def get_storage_account(args, backup_configuration):
        if args.storage_account:
            return args.storage_account
        return backup_configuration.get_azure_storage_account_name()

    @staticmethod
    def get_container(args, backup_configuration):
        if args.container:
            return args.container
        return backup_configuration.azure_storage_container_name

    @staticmethod
    def main():
        Runner.configure_logging()
        parser = Runner.arg_parser()
        args = parser.parse_args()

        logging.debug(Runner.log_script_invocation())
        config_file = Runner.get_config_file(args=args, parser=parser)
        backup_configuration = BackupConfiguration(config_file)
        backup_agent = BackupAgent(backup_configuration)

        if args.show_configuration:
            print(backup_agent.show_configuration())
            return

        if not (args.backup or args.list_backups or args.prune_old_backups or args.restore):
            parser.print_help()
            return

        Runner.require(args, "service", "vm_name")
        storage_account = Runner.get_storage_account(args, backup_configuration)
        container = Runner.get_container(args, backup_configuration)

        if args.backup:
            try:
                with pid.PidFile(pidname='vmbackup-{}-{}'.format(args.service, args.vm_name), piddir=".") as _p:
                    backup_agent.backup(
                        service_name=args.service, vm_name=args.vm_name,
                        storage_account=storage_account, container_name=container,
                        stop_vm=not args.online)
            except pid.PidFileAlreadyLockedError:
                logging.warning("Skip backup of %s/%s, already running", args.service, args.vm_name)
                out("Skip backup of {}/{}, already running".format(args.service, args.vm_name))
        elif args.list_backups:
            backup_agent.print_backups(
                service_name=args.service, vm_name=args.vm_name,
                storage_account=storage_account, container_name=container)
        elif args.prune_old_backups:
            backup_agent.prune_old_backups(
                service_name=args.service, vm_name=args.vm_name,
                storage_account=storage_account, container_name=container,
                keep_last=args.keep_last, older_than_days=args.older_than_days)
        elif args.restore:
            Runner.require(args, "target_service", "target_vm_name", "size")
            vm = backup_agent.restore(
                backup_service_name=args.service, backup_vm_name=args.vm_name,
                storage_account=storage_account, container_name=container,
                target_service_name=args.target_service, target_vm_name=args.target_vm_name,
                size=args.size, day=args.day, sequence=args.sequence,
                backup_id=args.backup_id, os_type=args.os_type)
            out("Restored VM {}/{}".format(vm.service_name, vm.name))
