"""
Subprocess Executor - runs one work item through a local generation script

Local fallback for when the remote service is unavailable: each item is
handed to a command line such as

    ["python", "generate_video.py", "--image", "{item}", "--output", "out_{index}.gif"]
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from i2v_batch.errors import JobFailedError, JobTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubprocessResult:
    """Captured output of a finished local job"""

    returncode: int
    stdout: str
    stderr: str


class SubprocessExecutor:
    """Async job executor that runs a command per item"""

    def __init__(
        self,
        command: Sequence[str],
        cwd: Optional[Union[str, Path]] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize executor

        Args:
            command: Argument templates; "{item}" and "{index}" are filled in
            cwd: Working directory for the command
            timeout: Seconds before the process is killed (None = no limit)
            env: Environment for the process (default: inherited)
        """
        if not command:
            raise ValueError("command must not be empty")
        self.command = list(command)
        self.cwd = str(cwd) if cwd is not None else None
        self.timeout = timeout
        self.env = env

    def build_args(self, item: Any, index: int) -> List[str]:
        """Fill the command templates for one item"""
        return [part.format(item=item, index=index) for part in self.command]

    async def __call__(self, item: Any, index: int) -> SubprocessResult:
        """
        Run the command for one item

        Raises:
            JobFailedError: If the command exits non-zero
            JobTimeoutError: If the command exceeds the timeout
        """
        label = f"Item {index + 1}"
        args = self.build_args(item, index)
        logger.info(f"{label} - Running {' '.join(args)}")

        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self.cwd,
            env=self.env,
        )

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise JobTimeoutError(f"{args[0]} timed out after {self.timeout:g}s", label=label)

        out_text = stdout.decode(errors='replace')
        err_text = stderr.decode(errors='replace')

        if err_text.strip():
            logger.debug(f"{label} - stderr: {err_text.strip()[-500:]}")

        if proc.returncode != 0:
            tail = err_text.strip()[-500:] or out_text.strip()[-500:]
            raise JobFailedError(
                f"{args[0]} exited with code {proc.returncode}: {tail}",
                label=label,
            )

        return SubprocessResult(returncode=proc.returncode, stdout=out_text, stderr=err_text)
