"""R interpreter driven over stdin/stdout pipes."""

from __future__ import annotations

import os
import queue
import re
import shutil
import subprocess
import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import psutil

from .base import StatisticalEngine
from ..errors import EngineError, EngineTimeout, EngineUnavailable

MB = 1024 * 1024

_REPLY = re.compile(r"^@@(OK|ERR):(\d+)@@(.*)$")

# Every request is answered by exactly one marker line; anything else the
# model scripts print is skipped.
_REQUEST = """local({{
  .reply <- tryCatch({{
    .value <- {{
{code}
    }}
    paste0("@@OK:{tag}@@", paste(format(.value, digits = 17), collapse = " "))
  }}, error = function(e) paste0("@@ERR:{tag}@@", gsub("[\\r\\n]+", " ", conditionMessage(e))))
  cat(.reply, "\\n", sep = "")
  flush(stdout())
}})
"""


def r_string(value) -> str:
    """Quote ``value`` as an R string literal (paths use forward slashes)."""
    text = value.as_posix() if isinstance(value, Path) else str(value)
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def wrap_request(code: str, tag: int) -> str:
    return _REQUEST.format(code=code, tag=tag)


def parse_reply(line: str, tag: int) -> Tuple[bool, str] | None:
    """``(ok, payload)`` for the reply to ``tag``; None for unrelated or stale lines."""
    m = _REPLY.match(line.strip())
    if not m or int(m.group(2)) != tag:
        return None
    return m.group(1) == "OK", m.group(3).strip()


def resolve_r_binary(binary: str | None = None) -> str | None:
    if binary:
        found = shutil.which(binary)
        if found:
            return found
        return binary if os.path.isfile(binary) else None
    r_home = os.getenv("R_HOME")
    if r_home:
        candidate = Path(r_home) / "bin" / ("R.exe" if os.name == "nt" else "R")
        if candidate.is_file():
            return str(candidate)
    return shutil.which("R")


def _pump(stream, sink) -> None:
    for line in iter(stream.readline, ""):
        sink(line.rstrip("\r\n"))


class RProcessEngine(StatisticalEngine):
    name = "r"

    def __init__(self, binary: str | None = None,
                 args: Sequence[str] = ("--vanilla", "--slave"),
                 packages: Sequence[str] = ()):
        self.binary = binary
        self.args = list(args)
        self.packages = list(packages)
        self.version: str | None = None
        self._proc: psutil.Popen | None = None
        self._lines: queue.Queue = queue.Queue()
        self._stderr: deque = deque(maxlen=20)
        self._eof = False
        self._seq = 0

    # ---------------------------------------------------------------------
    # lifecycle
    # ---------------------------------------------------------------------
    def start(self, timeout: float) -> None:
        binary = resolve_r_binary(self.binary)
        if not binary:
            raise EngineUnavailable(
                "R executable not found; install R, set R_HOME or pass r_binary"
            )
        try:
            self._proc = psutil.Popen(
                [binary, *self.args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise EngineUnavailable(f"Cannot launch R ({binary}): {e}") from e

        self._lines = queue.Queue()
        self._eof = False
        threading.Thread(target=self._read_stdout, daemon=True).start()
        threading.Thread(target=_pump, args=(self._proc.stderr, self._stderr.append), daemon=True).start()

        try:
            self.version = self._request("R.version.string", timeout, "start")
            for pkg in self.packages:
                installed = self._request(f"requireNamespace({r_string(pkg)}, quietly = TRUE)", timeout, "start")
                if installed != "TRUE":
                    raise EngineUnavailable(f"R package '{pkg}' is not installed")
        except EngineError as e:
            self.close()
            raise EngineUnavailable(f"R did not initialize: {e}") from e
        except (EngineUnavailable, EngineTimeout):
            self.close()
            raise

    def close(self) -> None:
        proc, self._proc = self._proc, None
        if proc is None:
            return
        try:
            if proc.poll() is None:
                try:
                    proc.stdin.write('q(save = "no")\n')
                    proc.stdin.flush()
                except (BrokenPipeError, OSError, ValueError):
                    pass  # already gone; the wait below reaps it
                try:
                    proc.wait(timeout=5)
                except psutil.TimeoutExpired:
                    self._kill_tree(proc)
        finally:
            for stream in (proc.stdin, proc.stdout, proc.stderr):
                if stream is not None:
                    try:
                        stream.close()
                    except OSError:
                        pass

    @staticmethod
    def _kill_tree(proc: psutil.Process) -> None:
        try:
            procs: List[psutil.Process] = proc.children(recursive=True) + [proc]
        except psutil.NoSuchProcess:
            return
        for p in procs:
            try:
                p.kill()
            except psutil.NoSuchProcess:
                continue
        psutil.wait_procs(procs, timeout=5)

    # ---------------------------------------------------------------------
    # requests
    # ---------------------------------------------------------------------
    def load(self, definition_path: Path, training_set_path: Path, timeout: float) -> None:
        code = "\n".join([
            f"assign(\"path\", {r_string(training_set_path)}, envir = .GlobalEnv)",
            f"source({r_string(definition_path)})",
            "TRUE",
        ])
        self._request(code, timeout, "load")

    def predict(self, exchange_path: Path, objective: int, timeout: float) -> float:
        code = "\n".join([
            f"newData <- read.csv(file = {r_string(exchange_path)}, header = TRUE, sep = \",\")",
            f"model <- get(\"modelQoS{int(objective)}\", envir = .GlobalEnv)",
            "as.numeric(predict(model, newData[1, , drop = FALSE]))[1]",
        ])
        raw = self._request(code, timeout, "predict")
        try:
            return float(raw)
        except ValueError:
            raise EngineError(f"modelQoS{objective} returned a non-numeric value: {raw!r}")

    def _request(self, code: str, timeout: float, operation: str) -> str:
        if self._proc is None:
            raise EngineError("R engine is not running")
        if self._eof or self._proc.poll() is not None:
            raise EngineError(f"R process has exited{self._stderr_tail()}")

        self._seq += 1
        tag = self._seq
        try:
            self._proc.stdin.write(wrap_request(code, tag))
            self._proc.stdin.flush()
        except (BrokenPipeError, OSError) as e:
            raise EngineError(f"Lost connection to R: {e}{self._stderr_tail()}") from e

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise EngineTimeout(operation, timeout)
            try:
                line = self._lines.get(timeout=remaining)
            except queue.Empty:
                raise EngineTimeout(operation, timeout)
            if line is None:
                self._eof = True
                raise EngineError(f"R process has exited{self._stderr_tail()}")
            reply = parse_reply(line, tag)
            if reply is None:
                continue
            ok, payload = reply
            if ok:
                return payload
            raise EngineError(payload)

    def _read_stdout(self) -> None:
        proc = self._proc
        try:
            _pump(proc.stdout, self._lines.put)
        except (ValueError, OSError):
            pass  # stream closed during shutdown
        finally:
            self._lines.put(None)

    def _stderr_tail(self) -> str:
        tail = " | ".join(line for line in self._stderr if line.strip())
        return f": {tail}" if tail else ""

    # ---------------------------------------------------------------------
    # introspection
    # ---------------------------------------------------------------------
    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    def usage(self) -> Dict[str, Any]:
        if self._proc is None:
            return {}
        try:
            with self._proc.oneshot():
                cpu = self._proc.cpu_times()
                return {
                    "pid": self._proc.pid,
                    "r_version": self.version,
                    "cpu_time_s": cpu.user + cpu.system,
                    "memory_used_mb": self._proc.memory_info().rss / MB,
                }
        except psutil.NoSuchProcess:
            return {"pid": None, "r_version": self.version}
