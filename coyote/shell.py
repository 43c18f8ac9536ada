# --------------------------------------------------------------------
# shell.py
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Wednesday, August 12 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
import asyncio
import shlex
import subprocess
from datetime import datetime
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Generator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from ansilog import fg

from .config import Config
from .errors import CommandFailure, MalformedTemplate
from .util import decode

# -------------------------------------------------------------------
LineSinkFunction = Callable[[str], None]
OutputTaskData = Tuple[asyncio.StreamReader, LineSinkFunction, bytearray]

CHUNK_SIZE = 65536

VARIABLES_TARGET = "<variables>"

# --------------------------------------------------------------------
log = Config.get().get_logger("coyote.shell")


# --------------------------------------------------------------------
def check(cmd: str) -> str:
    """Run the given command line and return its stripped output.

    This is how backtick-quoted spans in variable values are substituted.
    The command is split like a shell would, but no shell is involved."""
    try:
        args = shlex.split(cmd.strip())
    except ValueError as e:
        raise MalformedTemplate(cmd, "Failed to parse command: %s" % e) from e
    if not args:
        raise MalformedTemplate(cmd, "Empty command substitution.")

    log.debug("Substituting output of %s", shlex.join(args))
    try:
        proc = subprocess.run(
            args, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.PIPE
        )
    except OSError as e:
        raise CommandFailure(VARIABLES_TARGET, None, cmd, None, str(e)) from e

    if proc.returncode != 0:
        for line in decode(proc.stderr).splitlines():
            log.error(line)
        raise CommandFailure(VARIABLES_TARGET, None, cmd, proc.returncode)

    return decode(proc.stdout).strip()


# --------------------------------------------------------------------
class OutputLine:
    def __init__(self, stderr: bool, line: str, when: Optional[datetime] = None):
        self.stderr = stderr
        self.line = line
        self.when = when or datetime.now()

    def __str__(self):
        return self.line


# -------------------------------------------------------------------
class OutputSink:
    def output(self, line):
        raise NotImplementedError()

    def error(self, line):
        raise NotImplementedError()

    def lines(self, stdout=True, stderr=False) -> Generator[OutputLine, None, None]:
        raise NotImplementedError()


# -------------------------------------------------------------------
class InMemoryOutputSink(OutputSink):
    def __init__(self):
        self._lines: List[OutputLine] = []

    def output(self, line):
        self._lines.append(OutputLine(False, line))

    def error(self, line):
        self._lines.append(OutputLine(True, line))

    def lines(self, stdout=True, stderr=False) -> Generator[OutputLine, None, None]:
        for line in self._lines:
            if (not line.stderr and stdout) or (line.stderr and stderr):
                yield line


# -------------------------------------------------------------------
class NullOutputSink(OutputSink):
    def lines(self, stdout=True, stderr=False) -> Generator[OutputLine, None, None]:
        yield from ()


# -------------------------------------------------------------------
class AsyncOutputCollector:
    """Reads the output streams of a process into a sink, line by line.

    Streams are read in fixed-size chunks and split into lines here, so
    a single line may be of any length."""

    # pylint/issues/1469: pylint doesn't recognize asyncio.subprocess
    # pylint: disable=E1101
    def __init__(self):
        self._read_tasks: Dict[asyncio.Future[Any], OutputTaskData] = {}

    def _setup_read_task(
        self,
        stream: asyncio.StreamReader,
        sink: Callable[[str], None],
        buffer: bytearray,
    ):
        if stream is not None:
            self._read_tasks[asyncio.ensure_future(stream.read(CHUNK_SIZE))] = (
                stream,
                sink,
                buffer,
            )

    async def collect(self, proc: Any, sink: OutputSink):
        if not isinstance(proc, asyncio.subprocess.Process):
            raise ValueError("`proc` is not an asyncio.subprocess.Process object.")
        if proc.stdout is not None:
            self._setup_read_task(proc.stdout, sink.output, bytearray())
        if proc.stderr is not None:
            self._setup_read_task(proc.stderr, sink.error, bytearray())

        try:
            while self._read_tasks:
                done, pending = await asyncio.wait(
                    self._read_tasks, return_when=asyncio.FIRST_COMPLETED
                )

                for future in done:
                    stream, sink_f, buffer = self._read_tasks.pop(future)
                    chunk = future.result()
                    if chunk:
                        buffer.extend(chunk)
                        *lines, rest = buffer.split(b"\n")
                        for line in lines:
                            sink_f(decode(bytes(line)).rstrip("\r"))
                        buffer[:] = rest
                        self._setup_read_task(stream, sink_f, buffer)
                    elif buffer:
                        sink_f(decode(bytes(buffer)).rstrip("\r"))
                        buffer.clear()
        finally:
            for future in self._read_tasks:
                future.cancel()
            self._read_tasks.clear()


# -------------------------------------------------------------------
class ShellResult:
    def __init__(self):
        self._returncode: Optional[int] = None
        self._sink: OutputSink = NullOutputSink()

    @property
    def returncode(self) -> int:
        if self._returncode is None:
            raise ValueError("Return code has not yet been received.")
        return self._returncode

    @returncode.setter
    def returncode(self, code: int):
        if self._returncode is not None:
            raise ValueError("Return code has already been set.")
        self._returncode = code

    @property
    def has_returncode(self) -> bool:
        return self._returncode is not None

    @property
    def sink(self) -> OutputSink:
        return self._sink

    @sink.setter
    def sink(self, output_sink: OutputSink):
        self._sink = output_sink

    @property
    def stdout(self) -> List[str]:
        return list([l.line for l in self._sink.lines(stdout=True, stderr=False)])

    @property
    def stderr(self) -> List[str]:
        return list([l.line for l in self._sink.lines(stdout=False, stderr=True)])

    def __repr__(self):
        return "<%s (%s)>" % (
            self.__class__.__name__,
            self.returncode if self.has_returncode else "?",
        )


# -------------------------------------------------------------------
class ShellCommand:
    """A single process invocation: an executable and its arguments.

    No shell is involved, each argument is passed to the process as-is."""

    def __init__(
        self,
        command: str,
        arguments: Sequence[str] = (),
        success_codes: FrozenSet[int] = frozenset({0}),
    ):
        self.command = command
        self.arguments = list(arguments)
        self._success_codes = frozenset(success_codes)
        self._result = ShellResult()

    @property
    def succeeded(self) -> bool:
        return (
            self._result.has_returncode
            and self._result.returncode in self._success_codes
        )

    @property
    def display_info(self) -> str:
        return shlex.join([self.command, *self.arguments])

    @property
    def ansi_display_info(self) -> str:
        args = " ".join(shlex.quote(arg) for arg in self.arguments)
        return f"{fg.magenta(self.command)} {args}".rstrip()

    async def run(self) -> ShellResult:
        """Run the process to completion and collect its output.

        Raises OSError if the process could not be started at all."""
        if self._result.has_returncode:
            raise ValueError("ShellCommand has already been run.")

        proc = await asyncio.create_subprocess_exec(
            self.command,
            *self.arguments,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            collector = AsyncOutputCollector()
            sink = InMemoryOutputSink()
            await collector.collect(proc, sink)
            await proc.wait()

        finally:
            if proc.returncode is None:
                log.debug("Killing '%s' (pid %d)", self.command, proc.pid)
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()

        self._result.returncode = proc.returncode
        self._result.sink = sink
        return self._result
