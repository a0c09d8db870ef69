"""Utilities for handling KeyboardInterrupt in try-except blocks.

The build step blocks on a child process; when the operator presses Ctrl+C
the child tree is terminated first and the interrupt is then propagated so
the patch manager's restoration still runs.
"""

import _thread
import threading


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Handle KeyboardInterrupt by propagating it to the main thread.

    Usage:
        try:
            process.wait()
        except KeyboardInterrupt as ke:
            terminate_process_tree(process.pid)
            handle_keyboard_interrupt_properly(ke)

    In a worker thread the main thread is interrupted as well. In the main
    thread the exception is only re-raised; a second simulated SIGINT would
    land in the middle of the restore.

    Args:
        ke: The KeyboardInterrupt exception to handle

    Raises:
        KeyboardInterrupt: Always re-raises the exception after handling
    """
    if threading.current_thread() is not threading.main_thread():
        _thread.interrupt_main()
    raise ke
