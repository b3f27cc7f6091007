"""Code snippet execution for ``code/run-*`` actions."""

from __future__ import annotations

import asyncio
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Sequence

from ..errors import ActionExecutionError

logger = logging.getLogger(__name__)

# The snippet is the body of an async function receiving ``inputData``; its
# return value is written to stdout as JSON.
_WRAPPER = """
const chunks = [];
process.stdin.on("data", (chunk) => chunks.push(chunk));
process.stdin.on("end", async () => {
  const inputData = JSON.parse(Buffer.concat(chunks).toString() || "{}");
  try {
    const result = await (async (inputData) => {
__CODE__
    })(inputData);
    process.stdout.write(JSON.stringify(result === undefined ? {} : result));
  } catch (error) {
    process.stderr.write(String((error && error.message) || error));
    process.exit(1);
  }
});
"""


class SubprocessCodeRunner:
    """Run snippets in a Node.js subprocess, exchanging JSON over stdio."""

    def __init__(
        self,
        node: Sequence[str] = ("node",),
        tsx: Sequence[str] = ("tsx",),
        timeout: float = 30.0,
    ) -> None:
        self.node = list(node)
        self.tsx = list(tsx)
        self.timeout = timeout

    async def run_javascript(self, code: str, input_data: Dict[str, Any]) -> Any:
        return await self._run(self.node, ".mjs", code, input_data)

    async def run_typescript(self, code: str, input_data: Dict[str, Any]) -> Any:
        return await self._run(self.tsx, ".ts", code, input_data)

    async def _run(
        self, command: list[str], suffix: str, code: str, input_data: Dict[str, Any]
    ) -> Any:
        with tempfile.TemporaryDirectory() as tmp:
            script = Path(tmp) / f"snippet{suffix}"
            script.write_text(_WRAPPER.replace("__CODE__", code))
            process = await asyncio.create_subprocess_exec(
                *command,
                str(script),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(json.dumps(input_data).encode()),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                raise ActionExecutionError(
                    f"Code execution timed out after {self.timeout}s"
                )
        if process.returncode != 0:
            message = stderr.decode().strip()
            logger.debug(f"{command[0]} exited with code {process.returncode}")
            raise ActionExecutionError(
                message or f"Code execution failed with exit code {process.returncode}"
            )
        return json.loads(stdout.decode() or "{}")
