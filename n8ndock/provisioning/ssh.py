"""SSH reachability polling."""

import asyncio
import logging

from n8ndock.provisioning.ssh_transport import ssh_base_args

logger = logging.getLogger(__name__)


async def wait_for_ssh(server, ssh_key, ssh_port, timeout=30, interval=5):
    """Poll SSH connectivity until success or timeout.

    Returns:
        True if SSH connected, False on timeout.
    """
    elapsed = 0
    while elapsed < timeout:
        args = ssh_base_args(server, ssh_key, ssh_port)
        # Add ConnectTimeout for fast failure during polling
        args.insert(-1, "-o")
        args.insert(-1, "ConnectTimeout=5")
        args.append("true")
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        await proc.wait()
        if proc.returncode == 0:
            return True
        await asyncio.sleep(interval)
        elapsed += interval

    logger.error(f"Cannot reach {server} over SSH (port {ssh_port}) after {timeout}s. Check the address, key and firewall.")
    return False
