"""
Docker CLI wrapper.

Runs ``docker`` and ``docker compose`` through subprocess with argument
lists. Failing commands raise CommandError unless called with
``check=False``.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when an external command exits non-zero or cannot be run."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed ({returncode}): {' '.join(self.command)}"
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)


def run_command(
    command: Sequence[str],
    check: bool = True,
    capture: bool = True,
    input_text: Optional[str] = None,
    cwd: Optional[Path] = None,
    env: Optional[dict] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Run an external command.

    Args:
        command: Program and arguments
        check: Raise CommandError on a non-zero exit
        capture: Capture stdout/stderr instead of streaming them
        input_text: Text written to the command's stdin
        cwd: Working directory
        env: Full environment for the child process
        timeout: Seconds before the command is killed

    Returns:
        The completed process
    """
    logger.debug(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(
            list(command),
            cwd=str(cwd) if cwd else None,
            env=env,
            input=input_text,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        if check:
            raise CommandError(command, 127, str(e)) from e
        return subprocess.CompletedProcess(list(command), 127, "", str(e))
    except subprocess.TimeoutExpired as e:
        if check:
            raise CommandError(command, -1, f"timed out after {timeout}s") from e
        return subprocess.CompletedProcess(list(command), -1, "", "timeout")

    if check and result.returncode != 0:
        raise CommandError(command, result.returncode, result.stderr or "")
    return result


class Docker:
    """
    Thin wrapper over the docker CLI bound to a project directory.

    Compose operations take the compose file explicitly since the scripts
    work with several (staging, dev, registry).
    """

    def __init__(self, project_dir: Optional[Path] = None, binary: str = "docker"):
        self.project_dir = Path(project_dir) if project_dir else None
        self.binary = binary

    def run(self, *args: str, **kwargs) -> subprocess.CompletedProcess:
        kwargs.setdefault("cwd", self.project_dir)
        return run_command([self.binary, *args], **kwargs)

    def output(self, *args: str, check: bool = False) -> str:
        """Run a command and return its stdout (empty on failure)."""
        result = self.run(*args, check=check)
        if result.returncode != 0:
            return ""
        return result.stdout or ""

    # Daemon / registry

    def info(self) -> bool:
        """True if the docker daemon responds."""
        return self.run("info", check=False).returncode == 0

    def login(self, registry: str, user: str, token: str) -> None:
        self.run("login", registry, "-u", user, "--password-stdin", input_text=token)

    def pull(self, image: str, check: bool = True) -> bool:
        return self.run("pull", image, check=check).returncode == 0

    def tag(self, source: str, target: str, check: bool = True) -> bool:
        return self.run("tag", source, target, check=check).returncode == 0

    # Images

    def build(self, tag: str, context: str = ".", no_cache: bool = False) -> None:
        args = ["build"]
        if no_cache:
            args.append("--no-cache")
        args.extend(["-t", tag, context])
        self.run(*args, capture=False)

    def list_images(self, repository: Optional[str] = None) -> List[str]:
        """
        List ``repository:tag`` references, newest first.

        Args:
            repository: Restrict to one repository name
        """
        args = ["images", "--format", "{{.Repository}}:{{.Tag}}"]
        if repository:
            args.append(repository)
        return [line for line in self.output(*args).splitlines() if line.strip()]

    def image_exists(self, repository: str) -> bool:
        return bool(self.list_images(repository))

    def rmi(self, *images: str) -> bool:
        if not images:
            return True
        return self.run("rmi", *images, check=False).returncode == 0

    def image_prune(self, until: str = "720h") -> bool:
        return self.run("image", "prune", "-f", "--filter", f"until={until}", check=False).returncode == 0

    # Containers

    def ps(self, all_containers: bool = True, name_filter: Optional[str] = None) -> str:
        args = ["ps"]
        if all_containers:
            args.append("-a")
        if name_filter:
            args.extend(["--filter", f"name={name_filter}"])
        return self.output(*args)

    def logs(self, container: str, tail: int = 50) -> str:
        result = self.run("logs", container, "--tail", str(tail), check=False)
        return (result.stdout or "") + (result.stderr or "")

    def exec(self, container: str, *command: str, check: bool = False) -> subprocess.CompletedProcess:
        return self.run("exec", container, *command, check=check)

    def stats(self, *containers: str) -> str:
        return self.output("stats", "--no-stream", *containers)

    # Compose

    def _compose_args(self, compose_file: str, env_file: Optional[str] = None) -> List[str]:
        args = ["compose", "-f", compose_file]
        if env_file:
            args.extend(["--env-file", env_file])
        return args

    def compose_up(
        self,
        compose_file: str,
        env_file: Optional[str] = None,
        detach: bool = True,
        build: bool = False,
        check: bool = True,
        env: Optional[dict] = None,
    ) -> subprocess.CompletedProcess:
        args = self._compose_args(compose_file, env_file) + ["up"]
        if detach:
            args.append("-d")
        if build:
            args.append("--build")
        # Foreground runs stream container output to the terminal
        return self.run(*args, check=check, capture=detach, env=env)

    def compose_down(
        self,
        compose_file: str,
        timeout: Optional[int] = None,
        remove_orphans: bool = True,
        check: bool = True,
    ) -> bool:
        args = self._compose_args(compose_file) + ["down"]
        if timeout is not None:
            args.extend(["--timeout", str(timeout)])
        if remove_orphans:
            args.append("--remove-orphans")
        return self.run(*args, check=check).returncode == 0

    def compose_pull(self, compose_file: str) -> None:
        self.run(*self._compose_args(compose_file), "pull")

    def compose_ps(self, compose_file: str) -> str:
        return self.output(*self._compose_args(compose_file), "ps")

    def compose_logs(self, compose_file: str, service: Optional[str] = None, tail: Optional[int] = None) -> str:
        args = self._compose_args(compose_file) + ["logs"]
        if tail is not None:
            args.extend(["--tail", str(tail)])
        if service:
            args.append(service)
        result = self.run(*args, check=False)
        return (result.stdout or "") + (result.stderr or "")

    def compose_service_running(self, compose_file: str, service: str) -> bool:
        """True if ``compose ps -q <service>`` lists a container."""
        result = self.run(*self._compose_args(compose_file), "ps", "-q", service, check=False)
        return result.returncode == 0 and bool((result.stdout or "").strip())
