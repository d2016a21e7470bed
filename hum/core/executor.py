"""
External process runner for hum.
Runs tools (git, gh, dotnet, ssh-keygen, ansible) with argument lists,
captured output and enforced timeouts.
"""

import asyncio
import os
import shlex
import shutil
import time
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .errors import ToolInvocationError, ToolTimeoutError
from .logger import HumLogger
from .security import SecretsMasker


@dataclass
class CommandResult:
    """Result of a command execution."""
    command: str
    return_code: int
    stdout: str
    stderr: str
    success: bool
    duration_seconds: float
    timed_out: bool = False

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return f"{self.stdout}\n{self.stderr}".strip()


class CommandExecutor:
    """Executes external tools without a shell, with timeouts and logging."""

    def __init__(
        self,
        working_dir: Optional[Path] = None,
        logger: Optional[HumLogger] = None,
    ):
        self.working_dir = working_dir or Path.cwd()
        self.logger = logger or HumLogger("CommandExecutor")

    async def run(
        self,
        args: Sequence[str],
        timeout: float = 300,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Dict[str, str]] = None,
        input_text: Optional[str] = None,
        secrets: Iterable[str] = (),
    ) -> CommandResult:
        """
        Execute a command asynchronously.

        Args:
            args: Executable followed by its arguments
            timeout: Maximum execution time in seconds; the process is killed when exceeded
            cwd: Working directory (defaults to the executor's working_dir)
            env: Additional environment variables
            input_text: Text written to the process's stdin
            secrets: Literal values masked in logs (passphrases, tokens)

        Returns:
            CommandResult with execution details
        """
        secrets = list(secrets)
        command = shlex.join(args)
        safe_command = SecretsMasker.mask_secrets(command, secrets)
        self.logger.debug(f"Executing: {safe_command}", timeout=timeout)
        start_time = time.time()

        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd or self.working_dir),
                env=full_env,
            )
        except (FileNotFoundError, PermissionError) as e:
            self.logger.debug(f"Could not start {args[0]}: {e}")
            return CommandResult(
                command=safe_command,
                return_code=127,
                stdout="",
                stderr=f"{args[0]}: {e.strerror or e}",
                success=False,
                duration_seconds=time.time() - start_time,
            )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input_text.encode() if input_text is not None else None),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            await self._terminate(process)
            duration = time.time() - start_time
            self.logger.debug(f"Command timed out after {timeout}s: {safe_command}")
            return CommandResult(
                command=safe_command,
                return_code=-1,
                stdout="",
                stderr=f"Command timed out after {timeout} seconds",
                success=False,
                duration_seconds=duration,
                timed_out=True,
            )

        duration = time.time() - start_time
        result = CommandResult(
            command=safe_command,
            return_code=process.returncode,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
            success=process.returncode == 0,
            duration_seconds=duration,
        )

        if result.success:
            self.logger.debug(f"Command succeeded in {duration:.2f}s")
        else:
            self.logger.debug(
                f"Command failed with code {result.return_code}",
                stderr=SecretsMasker.mask_secrets(result.stderr, secrets),
            )

        return result

    async def check(self, args: Sequence[str], timeout: float = 300, **kwargs) -> CommandResult:
        """
        Like run(), but raise on failure.

        Raises:
            ToolTimeoutError: If the command timed out (after it was killed)
            ToolInvocationError: If the command exited non-zero; carries stderr verbatim
        """
        result = await self.run(args, timeout=timeout, **kwargs)
        if result.timed_out:
            raise ToolTimeoutError(result.command, timeout)
        if not result.success:
            raise ToolInvocationError(result.command, result.return_code, result.stderr or result.stdout)
        return result

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the process and reap it."""
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()

    def check_tool_exists(self, tool: str) -> bool:
        """Check if a tool is on PATH."""
        return shutil.which(tool) is not None

    async def get_tool_version(self, args: List[str], timeout: float = 5) -> Optional[str]:
        """Run a version probe and return the first output line, or None."""
        result = await self.run(args, timeout=timeout)
        if result.success:
            lines = result.output.splitlines()
            return lines[0].strip() if lines else ""
        return None
