"""Tests for the local/remote command executors and target resolution.

No PowerShell is invoked: _utils.run_powershell (or subprocess.run) is patched.
"""

import json
import socket
import subprocess
import unittest
import unittest.mock as mock

from disk_reclaim.errors import CommandError, RemotingUnavailableError
from disk_reclaim.executors import (
    LocalExecutor,
    RemoteExecutor,
    build_executor,
    establish_remoting,
    resolve_target,
)
from disk_reclaim.executors import _utils
from disk_reclaim.models import ExecutionTarget

PATCH_PS = "disk_reclaim.executors._utils.run_powershell"


def _remote(available=True, user=None, **layout):
    target = ExecutionTarget(
        host="pc042", is_remote=True, remoting_available=available,
        credential_user=user, **layout,
    )
    return RemoteExecutor(target, secret="hunter2" if user else None)


# ── path mapping ──────────────────────────────────────────────────────────────

class TestPathMapping(unittest.TestCase):

    def test_local_paths_unchanged(self):
        ex = LocalExecutor(ExecutionTarget(host="pc042"))
        self.assertEqual(ex.resolve("%SystemRoot%\\Temp\\*"), "C:\\Windows\\Temp\\*")

    def test_remote_maps_to_admin_share(self):
        ex = _remote()
        self.assertEqual(
            ex.to_local_path("C:\\Windows\\Temp\\*"),
            "\\\\pc042\\C$\\Windows\\Temp\\*",
        )

    def test_tokens_expand_against_target_layout(self):
        ex = _remote(system_drive="D:", system_root="D:\\WINNT")
        self.assertEqual(ex.resolve("%systemroot%\\Logs"), "\\\\pc042\\D$\\WINNT\\Logs")
        self.assertEqual(ex.expand("%ProgramData%\\x"), "D:\\ProgramData\\x")
        self.assertEqual(ex.expand("%ProgramFiles%\\x"), "D:\\Program Files\\x")

    def test_unc_path_passes_through(self):
        ex = _remote()
        self.assertEqual(ex.to_local_path("\\\\nas\\share\\x"), "\\\\nas\\share\\x")


# ── remote command wrapping ───────────────────────────────────────────────────

class TestRemoteExecutor(unittest.TestCase):

    def test_wraps_in_invoke_command(self):
        with mock.patch(PATCH_PS, return_value="ok") as ps:
            _remote().run_powershell("Get-Date")
        script = ps.call_args.args[0]
        self.assertIn("Invoke-Command -ComputerName 'pc042'", script)
        self.assertIn("-ScriptBlock { Get-Date }", script)
        self.assertNotIn("-Credential", script)
        self.assertIsNone(ps.call_args.kwargs["secret"])

    def test_credential_passed_through_environment(self):
        with mock.patch(PATCH_PS, return_value="ok") as ps:
            _remote(user="CORP\\admin").run_powershell("Get-Date")
        script = ps.call_args.args[0]
        self.assertIn("-Credential $cred", script)
        self.assertIn("'CORP\\admin'", script)
        self.assertIn("$env:" + _utils.SECRET_ENV, script)
        self.assertNotIn("hunter2", script)
        self.assertEqual(ps.call_args.kwargs["secret"], "hunter2")

    def test_refuses_before_remoting_established(self):
        with mock.patch(PATCH_PS) as ps:
            with self.assertRaises(RemotingUnavailableError):
                _remote(available=False).run_powershell("Get-Date")
        ps.assert_not_called()

    def test_run_process_parses_exit_code(self):
        payload = json.dumps({"Output": "The operation completed successfully.\r\n", "ExitCode": 0})
        with mock.patch(PATCH_PS, return_value=payload):
            proc = _remote().run_process("Dism.exe", ["/Online", "/Cleanup-Image", "/SPSuperseded"])
        self.assertEqual(proc.returncode, 0)
        self.assertEqual(proc.output, "The operation completed successfully.")

    def test_run_process_non_json_output(self):
        with mock.patch(PATCH_PS, return_value="garbled"):
            proc = _remote().run_process("winmgmt.exe", ["/salvagerepository"])
        self.assertIsNone(proc.returncode)
        self.assertEqual(proc.output, "garbled")


# ── target resolution ─────────────────────────────────────────────────────────

class TestResolveTarget(unittest.TestCase):

    def test_local_flag(self):
        target = resolve_target(None, True)
        self.assertFalse(target.is_remote)
        self.assertTrue(target.can_execute)

    def test_localhost_name_is_local(self):
        self.assertFalse(resolve_target("localhost", False).is_remote)
        self.assertFalse(resolve_target(socket.gethostname().upper(), False).is_remote)

    def test_remote_name(self):
        target = resolve_target("PC042", False, credential_user="CORP\\admin")
        self.assertTrue(target.is_remote)
        self.assertFalse(target.can_execute)
        self.assertEqual(target.credential_user, "CORP\\admin")
        self.assertIsInstance(build_executor(target), RemoteExecutor)

    def test_prompt_blank_means_local(self):
        prompt = mock.Mock(return_value="  ")
        target = resolve_target(None, False, prompt=prompt)
        prompt.assert_called_once()
        self.assertFalse(target.is_remote)

    def test_prompt_answer_used(self):
        target = resolve_target(None, False, prompt=lambda _: "PC077")
        self.assertEqual(target.host, "PC077")


class TestEstablishRemoting(unittest.TestCase):

    def test_unreachable_host(self):
        ex = _remote(available=False)
        with mock.patch(PATCH_PS, side_effect=CommandError("WinRM cannot complete the operation")):
            with self.assertRaises(RemotingUnavailableError):
                establish_remoting(ex)
        self.assertFalse(ex.target.remoting_available)

    def test_learns_remote_layout(self):
        ex = _remote(available=False)
        layout = json.dumps({"SystemDrive": "D:", "SystemRoot": "D:\\Windows"})
        with mock.patch(PATCH_PS, side_effect=["", layout]) as ps:
            establish_remoting(ex)
        self.assertTrue(ex.target.remoting_available)
        self.assertEqual(ex.target.system_drive, "D:")
        self.assertEqual(ex.target.system_root, "D:\\Windows")
        self.assertIn("Test-WSMan", ps.call_args_list[0].args[0])

    def test_session_failure_resets_flag(self):
        ex = _remote(available=False)
        with mock.patch(PATCH_PS, side_effect=["", CommandError("Access is denied")]):
            with self.assertRaises(RemotingUnavailableError):
                establish_remoting(ex)
        self.assertFalse(ex.target.remoting_available)

    def test_local_is_noop(self):
        with mock.patch(PATCH_PS) as ps:
            establish_remoting(LocalExecutor(ExecutionTarget(host="pc042")))
        ps.assert_not_called()


# ── process helpers ───────────────────────────────────────────────────────────

class TestRunPowershell(unittest.TestCase):

    def _completed(self, returncode, stdout=b"", stderr=b""):
        return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)

    def test_nonzero_exit_raises_command_error(self):
        with mock.patch("subprocess.run", return_value=self._completed(1, stderr=b"Access is denied")):
            with self.assertRaises(CommandError) as ctx:
                _utils.run_powershell("Stop-Service wuauserv")
        self.assertIn("Access is denied", str(ctx.exception))
        self.assertIsInstance(ctx.exception, RuntimeError)

    def test_utf8_bom_stripped(self):
        with mock.patch("subprocess.run", return_value=self._completed(0, stdout="\ufeffRunning\r\n".encode("utf-8"))):
            self.assertEqual(_utils.run_powershell("Get-Service"), "Running")

    def test_secret_only_in_environment(self):
        with mock.patch("subprocess.run", return_value=self._completed(0)) as run:
            _utils.run_powershell("Get-Date", secret="hunter2")
        self.assertEqual(run.call_args.kwargs["env"][_utils.SECRET_ENV], "hunter2")
        self.assertNotIn("hunter2", " ".join(run.call_args.args[0]))

    def test_run_process_combines_streams(self):
        with mock.patch("subprocess.run", return_value=self._completed(5, b"out", b"err")):
            code, output = _utils.run_process(["winmgmt.exe", "/salvagerepository"])
        self.assertEqual(code, 5)
        self.assertEqual(output, "out\nerr")

    def test_ps_quote_escapes(self):
        self.assertEqual(_utils.ps_quote("O'Brien"), "'O''Brien'")


if __name__ == "__main__":
    unittest.main()
