import base64
import logging
import os
import shutil
import subprocess
import sys
from typing import List, Optional, Tuple

from yaml import safe_load

logger = logging.getLogger(__name__)


CONFIG_DIRECTORY = ".frappe_release"


class PrefixFormatter(logging.Formatter):
    """Formats records as `[prefix] message`, labelling warnings and errors"""

    def __init__(self, prefix: str):
        super().__init__()
        self.prefix = prefix

    def format(self, record: logging.LogRecord) -> str:
        label = ""
        if record.levelno >= logging.ERROR:
            label = "ERROR: "
        elif record.levelno >= logging.WARNING:
            label = "WARNING: "
        message = f"[{self.prefix}] {label}{record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def configure_logging(prefix: str, verbose: bool = False):
    """Sends info records to stdout and warnings and errors to stderr

    Args:
        prefix: Printed in front of every log line, usually the command name
        verbose: Whether to include debug records
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = PrefixFormatter(prefix)

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.addFilter(lambda record: record.levelno < logging.WARNING)
    out_handler.setFormatter(formatter)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.WARNING)
    err_handler.setFormatter(formatter)

    root_logger.addHandler(out_handler)
    root_logger.addHandler(err_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def b64_encode_file(path: str) -> str:
    """Base64 encode the raw contents of a file, without line wrapping

    Args:
        path: path to the file to encode

    Returns:
        str: base64 encoded file contents

    Raises:
        OSError if the file could not be read
    """
    try:
        with open(path, "rb") as f:
            contents = f.read()
    except OSError as e:
        raise OSError(f"Failed to encode {os.path.basename(path)}: {e.strerror}") from e
    return base64.b64encode(contents).decode()


def load_yaml(path: str) -> dict:
    with open(path, "r") as f:
        loaded = safe_load(f)
    return {} if not loaded else loaded


def find_yaml_filename(filename: str) -> Optional[str]:
    """Looks for `<filename>.yaml` or `<filename>.yml` in the configuration directory

    Returns:
        The path of the first file found, None otherwise
    """
    extensions = (".yaml", ".yml")
    for ext in extensions:
        concat_filename = os.path.join(CONFIG_DIRECTORY, f"{filename}{ext}")
        if os.path.isfile(concat_filename):
            return concat_filename
        else:
            logger.debug(f"Could not find file: {concat_filename}")
    return None


def get_full_yaml_filename(filename: str) -> str:
    found = find_yaml_filename(filename)
    if not found:
        raise FileNotFoundError(f"Could not find any valid file for base_filename: {filename}")
    return found


def check_dependencies(commands: List[str]):
    """Makes sure every executable is available on the PATH

    Raises:
        OSError listing every missing executable
    """
    missing = [cmd for cmd in commands if shutil.which(cmd) is None]
    if missing:
        raise OSError(f"Missing required dependencies: {' '.join(missing)}")


def write_github_env(values: dict, path: Optional[str] = None) -> bool:
    """Appends `KEY=value` lines to the GitHub Actions environment file

    Args:
        values: The variables to export
        path: Alternative file, defaults to the file named by `GITHUB_ENV`

    Returns:
        True if the values were written, False if there was no file to write to
    """
    path = path or os.getenv("GITHUB_ENV")
    if not path:
        return False
    with open(path, "a") as f:
        for key, value in values.items():
            f.write(f"{key}={value}\n")
    return True


def run_shell_command(
    command: List[str], cwd: str = "./", stdin: Optional[str] = None, stderr=None
) -> Tuple[int, List]:
    """Runs a shell command using `subprocess.Popen`

    In addition to running any bash command, the output of process is streamed directly to the stdout.

    Args:
        command: The command and its arguments
        cwd: Working directory of the command
        stdin: Optional text written to the standard input of the process
        stderr: Passed to `subprocess.Popen`, e.g. `subprocess.DEVNULL` to silence the command

    Returns:
        The result of the bash command. 0 for success, >=1 for failure.
    """
    process = subprocess.Popen(
        command,
        stdout=subprocess.PIPE,
        stdin=subprocess.PIPE if stdin is not None else None,
        stderr=stderr,
        cwd=cwd,
        universal_newlines=True,
    )
    if stdin is not None:
        process.stdin.write(stdin)
        process.stdin.close()
    output_lines = []
    while True:
        output = process.stdout.readline()
        if output == "" and process.poll() is not None:
            break
        if output:
            print(output.strip())
            output_lines.append(output)
    return process.poll(), output_lines
