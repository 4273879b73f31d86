"""Terminal session management for raw-mode applications.

Provides a ``Session`` protocol and a concrete ``TerminalSession`` that owns
raw mode, the alternate screen buffer, terminal size queries and resize
notification for one controlling terminal. Entry and exit calls are mutually
exclusive and idempotent so that one application may invoke another without
toggling the terminal twice.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import os
import select
import signal
import sys
import termios
import threading
import tty
from dataclasses import dataclass
from typing import IO, Iterator, Protocol

from secshell.tui.errors import InputError, SessionError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALTERNATE_SCREEN_ENABLE = "\x1b[?1049h"
_ALTERNATE_SCREEN_DISABLE = "\x1b[?1049l"
_SHOW_CURSOR = "\x1b[?25h"

_WRITE_LOG_ENV = "SECSHELL_TUI_WRITE_LOG"


class TerminalState(enum.Enum):
    NORMAL = "normal"
    RAW = "raw"
    RAW_ALTERNATE = "raw-alternate"


@dataclass
class ModeToken:
    """Previous-mode token returned by :meth:`TerminalSession.enter_raw`.

    ``attributes`` is ``None`` when the session was already raw, in which
    case restoring the token leaves the terminal alone.
    """

    attributes: list | None
    restored: bool = False


# ---------------------------------------------------------------------------
# Session protocol
# ---------------------------------------------------------------------------


class Session(Protocol):
    """Interface the pager and editor use to talk to a terminal."""

    def get_size(self) -> tuple[int, int]: ...

    def write(self, data: str) -> None: ...

    def read_byte(self, timeout: float | None = None) -> bytes | None: ...

    def consume_resize(self) -> bool: ...

    def interactive(self) -> contextlib.AbstractContextManager[object]: ...


# ---------------------------------------------------------------------------
# TerminalSession implementation
# ---------------------------------------------------------------------------


class TerminalSession:
    """A controlling terminal shared by every application of the process.

    Parameters
    ----------
    input_fd:
        File descriptor keys are read from. Must refer to a TTY.
    output:
        Text stream frames are written to.
    owns_fd:
        Close ``input_fd`` in :meth:`close` (set when the session opened
        ``/dev/tty`` itself).
    """

    def __init__(
        self,
        input_fd: int,
        output: IO[str] | None = None,
        *,
        owns_fd: bool = False,
    ) -> None:
        self._fd = input_fd
        self._output = output if output is not None else sys.stdout
        self._owns_fd = owns_fd
        self._lock = threading.RLock()
        self._raw = False
        self._alternate = False
        self._size: tuple[int, int] | None = None
        self._resize_pending = False
        self._wake_r: int | None = None
        self._wake_w: int | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._write_log_path: str = os.environ.get(_WRITE_LOG_ENV, "")

    @classmethod
    def open(cls, output: IO[str] | None = None) -> TerminalSession:
        """Open a session on stdin, or on ``/dev/tty`` when stdin is redirected."""
        try:
            fd = sys.stdin.fileno()
            if os.isatty(fd):
                return cls(fd, output)
        except (ValueError, OSError):
            pass
        try:
            fd = os.open("/dev/tty", os.O_RDWR | os.O_NOCTTY)
        except OSError as exc:
            raise SessionError(f"no controlling terminal: {exc}") from exc
        logger.debug("stdin is not a terminal; reading keys from /dev/tty")
        return cls(fd, output, owns_fd=True)

    def close(self) -> None:
        if self._owns_fd:
            os.close(self._fd)
            self._owns_fd = False

    # -- state ---------------------------------------------------------------

    @property
    def state(self) -> TerminalState:
        with self._lock:
            if not self._raw:
                return TerminalState.NORMAL
            if self._alternate:
                return TerminalState.RAW_ALTERNATE
            return TerminalState.RAW

    @property
    def fd(self) -> int:
        return self._fd

    # -- raw mode ------------------------------------------------------------

    def enter_raw(self) -> ModeToken:
        """Switch to unbuffered, unechoed input and return a restore token."""
        with self._lock:
            if self._raw:
                return ModeToken(attributes=None)
            if not os.isatty(self._fd):
                raise SessionError("input is not a terminal")
            try:
                saved = termios.tcgetattr(self._fd)
                tty.setraw(self._fd, termios.TCSAFLUSH)
            except termios.error as exc:
                raise SessionError(f"failed to enter raw mode: {exc}") from exc
            self._raw = True
            logger.debug("entered raw mode on fd %d", self._fd)
            return ModeToken(attributes=saved)

    def restore(self, token: ModeToken) -> None:
        """Revert to the mode saved in *token*. Safe to call more than once.

        The token is only marked restored once the terminal accepted the
        saved mode, so a failed restore can be retried.
        """
        with self._lock:
            if token.restored:
                return
            if token.attributes is not None:
                try:
                    termios.tcsetattr(self._fd, termios.TCSAFLUSH, token.attributes)
                except termios.error as exc:
                    raise SessionError(f"failed to restore terminal mode: {exc}") from exc
                self._raw = False
                logger.debug("restored terminal mode on fd %d", self._fd)
            token.restored = True

    # -- alternate screen ----------------------------------------------------

    def enter_alternate_screen(self) -> bool:
        """Switch to the alternate screen. Returns ``True`` if this call switched."""
        with self._lock:
            if self._alternate:
                return False
            self.write(_ALTERNATE_SCREEN_ENABLE)
            self._alternate = True
            return True

    def exit_alternate_screen(self) -> bool:
        """Return to the primary screen. Returns ``True`` if this call switched."""
        with self._lock:
            if not self._alternate:
                return False
            self.write(_ALTERNATE_SCREEN_DISABLE)
            self._alternate = False
            return True

    @contextlib.contextmanager
    def interactive(self) -> Iterator[TerminalSession]:
        """Hold raw mode and the alternate screen for the enclosed block.

        The alternate screen is entered first; if raw mode then fails the
        screen switch is undone before the error propagates. Every exit path
        shows the cursor and leaves the alternate screen, even when restoring
        the saved mode fails.
        """
        switched = self.enter_alternate_screen()
        try:
            token = self.enter_raw()
        except SessionError:
            if switched:
                self.exit_alternate_screen()
            raise
        installed = self._install_resize_handler()
        try:
            yield self
        finally:
            try:
                if installed:
                    self._remove_resize_handler()
            finally:
                try:
                    self.restore(token)
                finally:
                    self.write(_SHOW_CURSOR)
                    if switched:
                        self.exit_alternate_screen()

    # -- size ----------------------------------------------------------------

    def get_size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``, re-queried after every resize."""
        with self._lock:
            if self._size is None:
                try:
                    size = os.get_terminal_size(self._fd)
                except OSError as exc:
                    raise SessionError(f"cannot query terminal size: {exc}") from exc
                self._size = (size.columns, size.lines)
            return self._size

    def consume_resize(self) -> bool:
        """Report and clear a pending resize notification."""
        with self._lock:
            pending = self._resize_pending
            self._resize_pending = False
            return pending

    # -- I/O -----------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to the terminal and optionally to the write log."""
        self._output.write(data)
        self._output.flush()

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                logger.debug("cannot append to write log %s", self._write_log_path)

    def read_byte(self, timeout: float | None = None) -> bytes | None:
        """Read one byte.

        Returns ``None`` when *timeout* expires or a resize wakes the reader.
        Raises :class:`InputError` on end of input or a read failure.
        """
        watched = [self._fd]
        if self._wake_r is not None:
            watched.append(self._wake_r)
        try:
            ready, _, _ = select.select(watched, [], [], timeout)
        except (OSError, ValueError) as exc:
            raise InputError(f"terminal read failed: {exc}") from exc

        if self._wake_r is not None and self._wake_r in ready:
            self._drain_wake_pipe()
        if self._fd not in ready:
            return None

        try:
            data = os.read(self._fd, 1)
        except OSError as exc:
            raise InputError(f"terminal read failed: {exc}") from exc
        if not data:
            raise InputError("end of input")
        return data

    # -- private: SIGWINCH ---------------------------------------------------

    def _install_resize_handler(self) -> bool:
        if self._wake_r is not None:
            return False
        try:
            previous = signal.getsignal(signal.SIGWINCH)
            signal.signal(signal.SIGWINCH, self._on_sigwinch)
        except ValueError:
            # Not the main thread: resize stays unobserved for this session.
            logger.debug("SIGWINCH handler not installed outside the main thread")
            return False
        self._prev_sigwinch_handler = previous
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_r, False)
        os.set_blocking(self._wake_w, False)
        return True

    def _remove_resize_handler(self) -> None:
        signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler or signal.SIG_DFL)
        self._prev_sigwinch_handler = None
        for fd in (self._wake_r, self._wake_w):
            if fd is not None:
                os.close(fd)
        self._wake_r = self._wake_w = None

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        self._size = None
        self._resize_pending = True
        if self._wake_w is not None:
            try:
                os.write(self._wake_w, b"\0")
            except BlockingIOError:
                pass

    def _drain_wake_pipe(self) -> None:
        assert self._wake_r is not None
        try:
            os.read(self._wake_r, 64)
        except BlockingIOError:
            pass
