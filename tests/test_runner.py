# coding=utf-8

"""Unit tests for the command line Runner."""
import os
import tempfile
import unittest
import mock
import pid
from vmbackupcli.runner import Runner
from vmbackupcli.backupexception import BackupException

class TestRunner(unittest.TestCase):
    """Unit tests for class Runner."""

    def setUp(self):
        handle, self.config_file = tempfile.mkstemp(suffix=".conf")
        os.close(handle)
        patches = [
            mock.patch.object(Runner, 'configure_logging'),
            mock.patch('vmbackupcli.runner.BackupConfiguration'),
            mock.patch('vmbackupcli.runner.BackupAgent'),
            mock.patch('vmbackupcli.runner.pid.PidFile'),
        ]
        for patch in patches:
            patch.start()
            self.addCleanup(patch.stop)
        from vmbackupcli import runner
        self.configuration = runner.BackupConfiguration.return_value
        self.configuration.azure_storage_container_name = "vhd-backups"
        self.configuration.get_azure_storage_account_name.return_value = "backupsa"
        self.agent = runner.BackupAgent.return_value
        self.pid_file = runner.pid.PidFile

    def tearDown(self):
        os.remove(self.config_file)

    def run_main(self, *args):
        with mock.patch('sys.argv', ["vmbackupcli", "-c", self.config_file] + list(args)):
            Runner.main()

    def test_require(self):
        args = Runner.arg_parser().parse_args(["-s", "svcA"])
        Runner.require(args, "service")
        with self.assertRaises(BackupException) as context:
            Runner.require(args, "service", "vm_name", "target_vm_name")
        self.assertIn("--vm-name, --target-vm-name", context.exception.message)

    def test_missing_config(self):
        with mock.patch('sys.argv', ["vmbackupcli", "-l"]), mock.patch('sys.stdout'):
            with self.assertRaises(BackupException):
                Runner.main()

    def test_backup(self):
        self.run_main("-b", "-s", "svcA", "-n", "web1", "--online")
        self.agent.backup.assert_called_once_with(
            service_name="svcA", vm_name="web1", storage_account="backupsa",
            container_name="vhd-backups", stop_vm=False)
        self.assertEqual(self.pid_file.call_args[1]["pidname"], "vmbackup-svcA-web1")

    def test_backup_already_running(self):
        self.pid_file.return_value.__enter__.side_effect = pid.PidFileAlreadyLockedError("locked")
        with mock.patch('vmbackupcli.runner.out') as out:
            self.run_main("-b", "-s", "svcA", "-n", "web1")
        self.assertFalse(self.agent.backup.called)
        self.assertIn("already running", out.call_args[0][0])

    def test_list_with_explicit_storage(self):
        self.run_main("-l", "-s", "svcA", "-n", "web1", "-a", "othersa", "-k", "backups")
        self.agent.print_backups.assert_called_once_with(
            service_name="svcA", vm_name="web1", storage_account="othersa", container_name="backups")

    def test_prune(self):
        self.run_main("-p", "-s", "svcA", "-n", "web1", "--keep-last", "3")
        self.agent.prune_old_backups.assert_called_once_with(
            service_name="svcA", vm_name="web1", storage_account="backupsa",
            container_name="vhd-backups", keep_last=3, older_than_days=None)

    def test_restore_requires_target(self):
        with self.assertRaises(BackupException):
            self.run_main("-r", "-s", "svcA", "-n", "web1", "--target-service", "svcB")
        self.assertFalse(self.agent.restore.called)

    def test_restore(self):
        with mock.patch('vmbackupcli.runner.out'):
            self.run_main("-r", "-s", "svcA", "-n", "web1", "--target-service", "svcB",
                          "--target-vm-name", "web2", "--size", "Standard_D2s_v3",
                          "--day", "2024-05-01", "--sequence", "1")
        self.agent.restore.assert_called_once_with(
            backup_service_name="svcA", backup_vm_name="web1",
            storage_account="backupsa", container_name="vhd-backups",
            target_service_name="svcB", target_vm_name="web2", size="Standard_D2s_v3",
            day="2024-05-01", sequence=1, backup_id=None, os_type=None)
