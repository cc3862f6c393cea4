"""Remote host provisioning: deploy dir, Docker engine, docker group."""

import asyncio
import logging

from n8ndock.provisioning.ssh_transport import REMOTE_DEPLOY_DIR, ssh_base_args

logger = logging.getLogger(__name__)


async def provision_remote(server, ssh_key, ssh_port, dry_run=False):
    """Ensure the remote server is ready for deployment.

    Steps (each checks before installing):
    1. Create the deploy directory
    2. Install Docker (with the compose plugin) if not found
    3. Add user to docker group

    Returns:
        True if every step succeeded.
    """

    async def _run_ssh(command, capture=False, timeout=600):
        args = ssh_base_args(server, ssh_key, ssh_port)
        args.append(command)
        proc = None
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            if proc.returncode != 0 and stderr_bytes and not capture:
                logger.error(f"SSH error ({server}): {stderr_bytes.decode().strip()}")
            if capture:
                return proc.returncode, stdout_bytes.decode().strip() if stdout_bytes else ""
            return proc.returncode, ""
        except TimeoutError:
            logger.error(f"SSH command timed out after {timeout}s: {command}")
            proc.kill()
            await proc.wait()
            return 1, ""

    if dry_run:
        logger.info(f"[dry-run] ssh {server}: mkdir -p {REMOTE_DEPLOY_DIR}")
        logger.info(f"[dry-run] ssh {server}: install docker (if not present)")
        logger.info(f"[dry-run] ssh {server}: add user to docker group")
        return True

    # 1. Create deploy directory
    rc, _ = await _run_ssh(f"mkdir -p {REMOTE_DEPLOY_DIR}")
    if rc != 0:
        return False

    # 2. Install Docker if not found
    rc, _ = await _run_ssh("command -v docker", capture=True)
    if rc != 0:
        logger.info("Installing Docker...")
        rc, _ = await _run_ssh("curl -fsSL https://get.docker.com | sudo sh", timeout=1200)
        if rc != 0:
            logger.error("Docker installation failed")
            return False

    # 3. Add user to docker group
    rc, _ = await _run_ssh("groups | grep -q docker || sudo usermod -aG docker $(whoami)")
    return rc == 0
