"""SSH transport: run commands and move files on the deploy host via SSH/SCP."""

import asyncio
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

REMOTE_DEPLOY_DIR = "~/n8ndock"

_SSH_OPTIONS = [
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "BatchMode=yes",
    "-o", "ServerAliveInterval=60",
    "-o", "ServerAliveCountMax=5",
]


def ssh_base_args(server, ssh_key, ssh_port):
    """Build base SSH arguments."""
    args = ["ssh", *_SSH_OPTIONS]
    if ssh_key:
        args += ["-i", os.path.expanduser(ssh_key)]
    if ssh_port and ssh_port != 22:
        args += ["-p", str(ssh_port)]
    args.append(server)
    return args


def scp_base_args(ssh_key, ssh_port):
    """Build base SCP arguments (note: scp takes -P for the port)."""
    args = ["scp", *_SSH_OPTIONS]
    if ssh_key:
        args += ["-i", os.path.expanduser(ssh_key)]
    if ssh_port and ssh_port != 22:
        args += ["-P", str(ssh_port)]
    return args


def remote_command(command):
    """Wrap a command to run inside the deploy dir (docker under the docker group)."""
    if command.strip().startswith("docker"):
        escaped = command.replace('"', '\\"')
        return f'sg docker -c "cd {REMOTE_DEPLOY_DIR} && {escaped}"'
    return f"cd {REMOTE_DEPLOY_DIR} && {command}"


def make_run_cmd(server, ssh_key, ssh_port, dry_run=False):
    """Create a run_cmd callable for SSH execution."""

    async def run_cmd(command, stream=True, timeout=600, log_output=False):
        full_cmd = remote_command(command)
        if dry_run:
            logger.info(f"[dry-run] ssh {server}: {full_cmd}")
            return 0, "", ""

        ssh_args = ssh_base_args(server, ssh_key, ssh_port)
        ssh_args.append(full_cmd)

        proc = None
        try:
            use_pipe = not stream or log_output
            proc = await asyncio.create_subprocess_exec(
                *ssh_args,
                stdout=asyncio.subprocess.PIPE if use_pipe else None,
                stderr=asyncio.subprocess.PIPE if use_pipe else None,
            )

            if log_output:
                stdout_lines, stderr_lines = [], []

                async def _read_stream(pipe, lines, level):
                    async for raw_line in pipe:
                        line = raw_line.decode().rstrip("\n")
                        logger.log(level, line)
                        lines.append(line)

                await asyncio.wait_for(
                    asyncio.gather(
                        _read_stream(proc.stdout, stdout_lines, logging.INFO),
                        _read_stream(proc.stderr, stderr_lines, logging.ERROR),
                        proc.wait(),
                    ),
                    timeout=timeout,
                )
                return proc.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)
            else:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
                stdout = "" if stream else (stdout_bytes.decode() if stdout_bytes else "")
                stderr = "" if stream else (stderr_bytes.decode() if stderr_bytes else "")
                return proc.returncode, stdout, stderr
        except TimeoutError:
            logger.error(f"Command timed out after {timeout}s: {command}")
            proc.kill()
            await proc.wait()
            return 1, "", ""
        except OSError as e:
            logger.error(f"Error running SSH command: {e}")
            return 1, "", ""

    return run_cmd


async def scp(src, dst, ssh_key, ssh_port, timeout=300):
    """Run scp src dst. Returns (returncode, stderr)."""
    args = [*scp_base_args(ssh_key, ssh_port), src, dst]
    proc = None
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        stderr = stderr_bytes.decode() if stderr_bytes else ""
        return proc.returncode, stderr
    except TimeoutError:
        logger.error(f"SCP timed out after {timeout}s: {src} -> {dst}")
        proc.kill()
        await proc.wait()
        return 1, "timeout"
    except OSError as e:
        logger.error(f"Error running scp: {e}")
        return 1, str(e)


def make_write_file(server, ssh_key, ssh_port, dry_run=False):
    """Create a write_file callable that SCPs generated files to the server."""

    async def write_file(path, content):
        remote_path = f"{REMOTE_DEPLOY_DIR}/{path}"
        if dry_run:
            logger.info(f"[dry-run] scp {path} -> {server}:{remote_path}")
            return True

        # Write to a temp file locally, then SCP
        with tempfile.NamedTemporaryFile(mode="w", suffix=f"_{path}", delete=False) as f:
            f.write(content)
            tmp_path = f.name

        try:
            rc, stderr = await scp(tmp_path, f"{server}:{remote_path}", ssh_key, ssh_port)
            if rc != 0:
                logger.error(f"Failed to SCP {path} to {server}:{remote_path}: {stderr}")
        finally:
            os.unlink(tmp_path)
        return rc == 0

    return write_file


def make_copy_file(server, ssh_key, ssh_port, dry_run=False):
    """Create a copy_file callable: upload a local file into the deploy dir."""

    async def copy_file(local_path, name):
        remote_path = f"{REMOTE_DEPLOY_DIR}/{name}"
        if dry_run:
            logger.info(f"[dry-run] scp {local_path} -> {server}:{remote_path}")
            return True
        rc, stderr = await scp(local_path, f"{server}:{remote_path}", ssh_key, ssh_port, timeout=3600)
        if rc != 0:
            logger.error(f"Failed to upload {local_path}: {stderr}")
        return rc == 0

    return copy_file


def make_fetch_file(server, ssh_key, ssh_port, dry_run=False):
    """Create a fetch_file callable: download a file from the deploy dir."""

    async def fetch_file(name, local_path):
        remote_path = f"{REMOTE_DEPLOY_DIR}/{name}"
        if dry_run:
            logger.info(f"[dry-run] scp {server}:{remote_path} -> {local_path}")
            return True
        rc, stderr = await scp(f"{server}:{remote_path}", local_path, ssh_key, ssh_port, timeout=3600)
        if rc != 0:
            logger.error(f"Failed to download {remote_path}: {stderr}")
        return rc == 0

    return fetch_file
