"""Utilities for handling KeyboardInterrupt in try-except blocks.

Relay threads in the process runner cannot receive SIGINT themselves, so an
interrupt caught off the main thread must be forwarded to it explicitly.
"""

import _thread
import threading


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Propagate a KeyboardInterrupt to the main thread and re-raise it.

    Usage:
        try:
            ...
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)

    Args:
        ke: The KeyboardInterrupt exception to handle

    Raises:
        KeyboardInterrupt: Always re-raises the exception after handling
    """
    if threading.current_thread() is not threading.main_thread():
        _thread.interrupt_main()
    raise ke
