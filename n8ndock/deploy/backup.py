"""Volume backup and restore for the n8n and Postgres data volumes.

An archive is a gzipped tar whose top-level directories are ``n8n/`` (the
n8n_data volume) and ``db/`` (the postgres_data volume). The certificate
volume is not archived; Caddy re-issues certificates on demand.
"""

import logging
import os
import posixpath
import tarfile

from n8ndock.topology import services as svc

logger = logging.getLogger(__name__)

HELPER_IMAGE = "alpine:3"

# archive root -> volume it is restored into
ARCHIVE_ROOTS = {
    "n8n": svc.N8N_VOLUME,
    "db": svc.POSTGRES_VOLUME,
}

RESTORE_ARCHIVE_NAME = "restore.tar.gz"


class BackupError(Exception):
    """Archive is malformed or a restore precondition does not hold."""


def _mounts(read_only=False):
    suffix = ":ro" if read_only else ""
    return " ".join(f"-v {volume}:/{root}{suffix}" for root, volume in ARCHIVE_ROOTS.items())


def backup_command(archive_name):
    """Stream both volumes into archive_name in the deploy dir."""
    roots = " ".join(ARCHIVE_ROOTS)
    return f"docker run --rm {_mounts(read_only=True)} {HELPER_IMAGE} tar czf - -C / {roots} > {archive_name}"


def extract_command(archive_name):
    """Unpack archive_name from the deploy dir into the (empty) volumes."""
    return f"docker run --rm -i {_mounts()} {HELPER_IMAGE} tar xzf - -C / < {archive_name}"


def chown_command():
    """Hand the n8n data back to the unprivileged user n8n runs as."""
    return (
        f"docker run --rm -v {svc.N8N_VOLUME}:/n8n {HELPER_IMAGE}"
        f" chown -R {svc.N8N_UID}:{svc.N8N_GID} /n8n"
    )


def validate_archive(path):
    """Check a backup archive before it is uploaded and restored.

    Returns:
        dict of archive root -> number of members under it.

    Raises:
        BackupError: unreadable archive, unsafe member paths, or missing roots.
    """
    if not os.path.isfile(path):
        raise BackupError(f"Archive not found: {path}")

    counts = {root: 0 for root in ARCHIVE_ROOTS}
    try:
        with tarfile.open(path, "r:gz") as tar:
            for member in tar:
                name = member.name
                if name.startswith("./"):
                    name = name[2:]
                normalized = posixpath.normpath(name)
                if posixpath.isabs(name) or normalized.split("/")[0] == "..":
                    raise BackupError(f"Unsafe path in archive: {member.name}")
                if normalized == ".":
                    continue
                if member.issym():
                    target = posixpath.join(posixpath.dirname(normalized), member.linkname)
                elif member.islnk():
                    target = member.linkname
                else:
                    target = None
                if target is not None and (
                    posixpath.isabs(member.linkname) or posixpath.normpath(target).split("/")[0] == ".."
                ):
                    raise BackupError(f"Link escapes archive: {member.name} -> {member.linkname}")
                root = normalized.split("/")[0]
                if root not in counts:
                    raise BackupError(f"Unexpected top-level entry '{root}' in archive")
                counts[root] += 1
    except tarfile.TarError as e:
        raise BackupError(f"Cannot read archive {path}: {e}") from e

    missing = [root for root, count in counts.items() if count == 0]
    if missing:
        raise BackupError(f"Archive is missing {', '.join(f'{r}/' for r in missing)}")
    return counts


async def run_backup(run_cmd, fetch_file, archive_name, dest, online=False, dry_run=False):
    """Snapshot the data volumes and fetch the archive to dest.

    Unless online is set the stack is stopped for the snapshot so Postgres
    files are consistent, then started again.
    """
    if not online:
        logger.info("Stopping stack for a consistent snapshot...")
        rc, _, _ = await run_cmd("docker compose stop", timeout=300, log_output=True)
        if rc != 0:
            logger.error("Failed to stop the stack; pass --online to snapshot it while running")
            return False

    logger.info(f"Archiving {', '.join(ARCHIVE_ROOTS.values())} -> {archive_name}")
    rc, _, _ = await run_cmd(backup_command(archive_name), timeout=3600, log_output=True)

    if not online:
        logger.info("Starting stack...")
        await run_cmd("docker compose start", timeout=600, log_output=True)

    if rc != 0:
        logger.error("Backup failed")
        return False

    if not await fetch_file(archive_name, dest):
        return False

    if not dry_run:
        counts = validate_archive(dest)
        logger.info(f"Backup written to {dest} ({', '.join(f'{r}/: {n}' for r, n in counts.items())})")
    return True


async def _prepare_volume(run_cmd, volume, replace=False, dry_run=False):
    rc, _, _ = await run_cmd(f"docker volume inspect {volume}", stream=False, timeout=60)
    if rc == 0 and not dry_run:
        if not replace:
            logger.error(f"Volume {volume} already exists. Pass --replace to discard its contents.")
            return False
        logger.info(f"Removing existing volume {volume}")
        rc, _, _ = await run_cmd(f"docker volume rm {volume}", timeout=120, log_output=True)
        if rc != 0:
            logger.error(f"Failed to remove volume {volume}")
            return False

    rc, _, _ = await run_cmd(f"docker volume create {volume}", timeout=60, log_output=True)
    if rc != 0:
        logger.error(f"Failed to create volume {volume}")
        return False
    return True


async def run_restore(run_cmd, copy_file, archive_path, replace=False, dry_run=False):
    """Restore an archive into freshly created volumes.

    Order: stop stack, recreate empty volumes, extract, fix ownership.
    Starting the stack again is left to the caller (a normal apply).
    Without replace, existing volumes abort the restore before anything
    is uploaded or stopped.
    """
    counts = validate_archive(archive_path)
    logger.info(f"Archive OK: {', '.join(f'{r}/: {n}' for r, n in counts.items())}")

    if not replace and not dry_run:
        for volume in ARCHIVE_ROOTS.values():
            rc, _, _ = await run_cmd(f"docker volume inspect {volume}", stream=False, timeout=60)
            if rc == 0:
                logger.error(f"Volume {volume} already exists. Pass --replace to discard its contents.")
                return False

    if not await copy_file(archive_path, RESTORE_ARCHIVE_NAME):
        return False

    logger.info("Stopping stack...")
    rc, _, _ = await run_cmd("docker compose down", timeout=300, log_output=True)
    if rc != 0:
        logger.warning("docker compose down failed (no stack deployed yet?)")

    for volume in ARCHIVE_ROOTS.values():
        if not await _prepare_volume(run_cmd, volume, replace=replace, dry_run=dry_run):
            return False

    logger.info("Extracting archive into volumes...")
    rc, _, _ = await run_cmd(extract_command(RESTORE_ARCHIVE_NAME), timeout=3600, log_output=True)
    if rc != 0:
        logger.error("Extraction failed")
        return False

    logger.info(f"Setting owner of {svc.N8N_VOLUME} to {svc.N8N_UID}:{svc.N8N_GID}")
    rc, _, _ = await run_cmd(chown_command(), timeout=600, log_output=True)
    if rc != 0:
        logger.error("Ownership correction failed")
        return False

    await run_cmd(f"rm -f {RESTORE_ARCHIVE_NAME}", timeout=60)
    return True
