"""
Filesystem helpers shared by the provisioner and the system-info probe.

• sysroot_path  → rebase an absolute path on $DDE_SYSROOT (chroots, image builds)
• is_file_exist → existence predicate (symlinks count, even dangling ones)
• copy_dir      → merge-copy a tree into an existing directory
• change_owner  → `chown -hR owner:group path` without spawning chown
• read_key      → first `<key><delim>value` line of a small text file
"""

import grp
import logging
import os
import pwd
import shutil
from pathlib import Path

from errors import ChownError, NotFoundError

logger = logging.getLogger(__name__)

# Rebase every well-known path on this root when set, the way tools that run
# inside a confined environment reach the host filesystem.
_SYSROOT = os.environ.get("DDE_SYSROOT", "")


def sysroot_path(path: str) -> str:
    """Return *path* rebased on $DDE_SYSROOT (unchanged when unset)."""
    if not _SYSROOT:
        return path
    return os.path.join(_SYSROOT, path.lstrip("/"))


def is_file_exist(path) -> bool:
    return os.path.lexists(path)


def copy_dir(src, dest) -> None:
    """
    Copy the contents of *src* into *dest*, merging with what is there.

    Directories are created as needed, regular files overwrite files at the
    same relative path, symlinks are recreated as symlinks (never followed).
    """
    src = Path(src)
    dest = Path(dest)
    if not src.is_dir():
        raise NotFoundError(f"Not a directory: '{src}'")

    logger.debug(f"Copying '{src}' into '{dest}'")
    dest.mkdir(parents=True, exist_ok=True)

    for root, dirs, files in os.walk(src):
        rel = Path(root).relative_to(src)
        target_dir = dest / rel

        for name in dirs:
            s = Path(root) / name
            d = target_dir / name
            if s.is_symlink():
                _copy_symlink(s, d)
                continue
            if d.is_symlink() or (d.exists() and not d.is_dir()):
                d.unlink()
            d.mkdir(exist_ok=True)
            shutil.copystat(s, d)

        for name in files:
            s = Path(root) / name
            d = target_dir / name
            if s.is_symlink():
                _copy_symlink(s, d)
                continue
            if d.is_symlink():
                d.unlink()
            elif d.is_dir():
                shutil.rmtree(d)
            shutil.copy2(s, d)


def _copy_symlink(src: Path, dest: Path) -> None:
    if dest.is_symlink() or dest.is_file():
        dest.unlink()
    elif dest.is_dir():
        shutil.rmtree(dest)
    os.symlink(os.readlink(src), dest)


def change_owner(path, owner: str, group: str) -> None:
    """
    Recursively hand *path* over to owner:group, like `chown -hR`.

    Symlinks are changed themselves and never dereferenced; the walk does not
    descend through symlinked directories.  Every entry is attempted; the
    failures are collected and raised together as a ChownError.
    """
    try:
        uid = pwd.getpwnam(owner).pw_uid
    except KeyError:
        raise NotFoundError(f"chown: invalid user: '{owner}:{group}'")
    try:
        gid = grp.getgrnam(group).gr_gid
    except KeyError:
        raise NotFoundError(f"chown: invalid group: '{owner}:{group}'")

    failures = []

    def _lchown(p):
        try:
            os.lchown(p, uid, gid)
        except OSError as e:
            failures.append(f"chown: changing ownership of '{p}': {e.strerror}")

    _lchown(path)
    if os.path.isdir(path) and not os.path.islink(path):
        for root, dirs, files in os.walk(path, onerror=lambda e: failures.append(
                f"chown: cannot read directory '{e.filename}': {e.strerror}")):
            for name in dirs + files:
                _lchown(os.path.join(root, name))

    if failures:
        raise ChownError("\n".join(failures), returncode=1,
                         cmd=["chown", "-hR", f"{owner}:{group}", str(path)])


def read_key(path, key: str, delim: str) -> str:
    """
    Return the trimmed value of the first line starting with `<key><delim>`.

    An empty string means the key is not present.  A missing file raises
    NotFoundError.
    """
    prefix = key + delim
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            for line in f:
                if line.startswith(prefix):
                    return line[len(prefix):].strip()
    except FileNotFoundError:
        raise NotFoundError(f"No such file or directory: '{path}'")
    return ""
