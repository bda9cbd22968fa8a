import logging
import shutil
import subprocess
from pathlib import Path
from subprocess import CalledProcessError, run
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


def check_command_exists(command: str) -> bool:
    """Check if a command exists in PATH."""
    return shutil.which(command) is not None


def run_cmd(cmd: List[str], cwd: Optional[Union[str, Path]] = None) -> subprocess.CompletedProcess:
    """Run a command, logging it, and raise CalledProcessError with its output on failure."""
    logger.info(f"Running: {' '.join(cmd)}")
    if cwd:
        logger.debug(f"Working directory: {cwd}")

    try:
        return run(cmd, cwd=cwd, check=True, capture_output=True, text=True)
    except CalledProcessError as e:
        logger.error(f"Command failed with exit code {e.returncode}: {' '.join(cmd)}")
        if e.stderr:
            logger.error(e.stderr.strip())
        raise


def get_git_repo(url: str, output_dir: Path, branch: str) -> Path:
    """Shallow-clone one branch of url into output_dir, which must not exist yet."""
    output_dir = Path(output_dir)
    if output_dir.exists() and any(output_dir.iterdir()):
        raise FileExistsError(f"Git clone output set to `{output_dir}`, but it is not empty")
    run_cmd(["git", "clone", "--depth", "1", "--branch", branch, url, str(output_dir)])
    return output_dir


def rmdir_if_exist(path: Union[str, Path]) -> None:
    if Path(path).exists():
        shutil.rmtree(path)
