#!/usr/bin/env python3
"""
otp_generator.py — real-time TOTP display loop.

Recomputes the code on every tick (~100ms), prints a timestamped line when
the code changes and redraws a countdown bar in place:

  ┌─────────────────────────────────────┐
  │         TOTP CODE GENERATOR         │
  └─────────────────────────────────────┘

  [14:03:30] 287082 (expires in 30s)
  [█████████░░░░░░░░░░░░░░░░░░░░░] 21s

The loop stops when the stop event is set, after `max_ticks` ticks, or on
Ctrl+C. Clock, output stream and tick length are injectable so the loop can be
driven without real waiting.
"""

import sys
import threading
import time
from typing import Callable, Optional, TextIO

from core.otp_core import DEFAULT_TIME_STEP, generate_totp

TICK_SECONDS = 0.1
BAR_WIDTH = 30
GREEN = "\033[1;32m"
CYAN = "\033[1;36m"
RESET = "\033[0m"

HEADER = (
    "\n"
    "  ┌─────────────────────────────────────┐\n"
    "  │         TOTP CODE GENERATOR         │\n"
    "  └─────────────────────────────────────┘\n"
    "\n"
)


def log(msg: str, verbose: bool, out: TextIO = None):
    if verbose:
        print(f"[+] {msg}", file=out or sys.stdout)


def render_progress_bar(time_remaining: int, time_step: int, width: int = BAR_WIDTH,
                        color: bool = True) -> str:
    """Bar filled in proportion to the elapsed part of the interval."""
    elapsed = time_step - time_remaining
    filled = (elapsed * width) // time_step
    cell = f"{CYAN}█{RESET}" if color else "█"
    return "[" + cell * filled + "░" * (width - filled) + f"] {time_remaining:2d}s "


def run_generator(
    secret: str,
    time_step: int = DEFAULT_TIME_STEP,
    stop_event: Optional[threading.Event] = None,
    tick: float = TICK_SECONDS,
    clock: Callable[[], float] = time.time,
    out: TextIO = None,
    max_ticks: Optional[int] = None,
    show_secret: bool = False,
    verbose: bool = False,
) -> int:
    """
    Display TOTP codes for `secret` until stopped.

    Returns the number of distinct codes shown.

    Raises:
        InvalidSecretError / ValueError: from the first code computation,
        before anything is drawn.
    """
    out = out or sys.stdout
    stop_event = stop_event or threading.Event()
    color = out.isatty() if hasattr(out, "isatty") else False

    # fail before printing the header if the secret is unusable
    result = generate_totp(secret, time_step, clock())

    out.write(HEADER)
    if show_secret:
        out.write(f"  [*] secret: {secret}\n")
    out.write(f"  [*] time step: {time_step}s\n")
    out.write("  [*] press ctrl+c to exit\n\n")
    out.flush()

    last_code = None
    shown = 0
    ticks = 0
    try:
        while not stop_event.is_set():
            now = clock()
            result = generate_totp(secret, time_step, now)

            if result.code != last_code:
                stamp = time.strftime("%H:%M:%S", time.localtime(now))
                code = f"{GREEN}{result.code}{RESET}" if color else result.code
                out.write(f"\r  [{stamp}] {code} (expires in {result.time_remaining}s)"
                          + " " * 10 + "\n")
                log(f"counter={int(now) // time_step}", verbose, out)
                last_code = result.code
                shown += 1

            out.write("\r  " + render_progress_bar(result.time_remaining, time_step, color=color))
            out.flush()

            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            stop_event.wait(tick)
    except KeyboardInterrupt:
        pass
    out.write("\n")
    out.flush()
    return shown


def run_in_background(secret: str, time_step: int = DEFAULT_TIME_STEP, **kwargs) -> tuple:
    """Start run_generator on a daemon thread. Returns (thread, stop_event)."""
    stop_event = threading.Event()
    thread = threading.Thread(
        target=run_generator,
        args=(secret, time_step),
        kwargs=dict(kwargs, stop_event=stop_event),
        daemon=True,
    )
    thread.start()
    return thread, stop_event
