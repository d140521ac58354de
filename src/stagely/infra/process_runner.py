"""Subprocess-backed implementation of :class:`~stagely.core.protocols.CommandRunner`.

This module is the **only** place in the codebase that spawns
processes.  A missing executable is re-raised as
:class:`~stagely.exceptions.ToolNotFoundError`; non-zero exits are NOT
errors here — they are returned in the :class:`ProcessResult` for the
calling workflow to judge.

No timeout is enforced: collaborators such as ``kops`` may legitimately
block for minutes on cloud API calls.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Mapping, Sequence
from typing import IO

from stagely.core.models import ProcessResult
from stagely.exceptions import ToolNotFoundError
from stagely.infra.tool_detector import install_hint

logger = logging.getLogger(__name__)


class SubprocessRunner:
    """Concrete :class:`CommandRunner` backed by :mod:`subprocess`.

    This class satisfies the :class:`~stagely.core.protocols.CommandRunner`
    protocol structurally — no explicit inheritance required.
    """

    def run(
        self,
        args: Sequence[str],
        *,
        silent: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        """Run *args* and wait for it to exit.

        When *silent* is ``False`` both streams are echoed to this
        process's stdout/stderr line by line while being captured.
        Output that is not valid UTF-8 is decoded with replacement
        characters.
        """
        argv = [str(arg) for arg in args]
        logger.debug("Running %s (silent=%s)", " ".join(argv), silent)

        cmd_env = os.environ.copy()
        if env:
            cmd_env.update(env)

        try:
            if silent:
                proc = subprocess.run(
                    argv,
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                    env=cmd_env,
                )
                result = ProcessResult(
                    args=tuple(argv),
                    returncode=proc.returncode,
                    stdout=proc.stdout or "",
                    stderr=proc.stderr or "",
                )
            else:
                result = self._run_streaming(argv, cmd_env)
        except FileNotFoundError as exc:
            raise ToolNotFoundError(
                f"{argv[0]} is not installed or not on PATH.",
                hint=install_hint(argv[0]),
            ) from exc

        logger.debug("%s exited with %d", argv[0], result.returncode)
        return result

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    @staticmethod
    def _run_streaming(argv: list[str], env: dict[str, str]) -> ProcessResult:
        with subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            env=env,
        ) as proc:
            stdout_lines: list[str] = []
            stderr_lines: list[str] = []
            pumps = [
                threading.Thread(target=_tee, args=(proc.stdout, sys.stdout, stdout_lines), daemon=True),
                threading.Thread(target=_tee, args=(proc.stderr, sys.stderr, stderr_lines), daemon=True),
            ]
            for pump in pumps:
                pump.start()
            try:
                returncode = proc.wait()
            except BaseException:
                proc.terminate()
                raise
            for pump in pumps:
                pump.join()

        return ProcessResult(
            args=tuple(argv),
            returncode=returncode,
            stdout="".join(stdout_lines),
            stderr="".join(stderr_lines),
        )


def _tee(source: IO[str] | None, sink: IO[str], lines: list[str]) -> None:
    """Copy *source* to *sink* line by line, keeping a copy in *lines*."""
    if source is None:
        return
    for line in source:
        lines.append(line)
        sink.write(line)
        sink.flush()
