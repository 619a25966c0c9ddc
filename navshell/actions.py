import logging
import shlex
import shutil
import subprocess
import webbrowser

import pyperclip

logger = logging.getLogger(__name__)

DEFAULT_ELEVATE_COMMAND = "pkexec sh -c {command}"


def spawn(command: str) -> bool:
    """Start a shell command and forget about it."""
    if not command:
        return False
    try:
        subprocess.Popen(
            command,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        logger.info(f"Spawned: {command}")
        return True
    except Exception as e:
        logger.error(f"Failed to spawn {command!r}: {e}")
        return False


def spawn_elevated(command: str, template: str = DEFAULT_ELEVATE_COMMAND) -> bool:
    """Run ``command`` through the privilege helper named in ``template``."""
    if not command:
        return False
    return spawn(template.format(command=shlex.quote(command)))


def show_info(source_path: str) -> bool:
    """Copy an entry's source path to the clipboard and say so."""
    if not source_path:
        return False
    try:
        pyperclip.copy(source_path)
    except Exception as e:
        logger.error(f"Clipboard unavailable: {e}")
        return False
    if shutil.which("notify-send"):
        spawn(f"notify-send {shlex.quote('Desktop file path copied')} {shlex.quote(source_path)}")
    return True


def execute_action(action):
    """
    Main entry point to execute commands.
    """
    action_type = action.get("type")
    value = action.get("value")

    try:
        if action_type in ("exec", "cmd"):
            spawn(value)

        elif action_type == "elevated":
            spawn_elevated(value, action.get("template", DEFAULT_ELEVATE_COMMAND))

        elif action_type == "info":
            show_info(value)

        elif action_type == "copy":
            pyperclip.copy(value)

        elif action_type == "url":
            webbrowser.open(value)

        else:
            logger.warning(f"Unknown action type: {action_type!r}")
    except Exception as e:
        logger.error(f"General Execution Error: {e}")
