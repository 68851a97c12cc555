"""
User data provisioning for newly created accounts.

The account daemon calls provision() once per new user.  The skeleton trees
shipped by deepin-default-settings are merged into the home directory, the
locale specific one last so it wins on identical paths, and the whole home is
then handed over to the user.  Every step is best effort: failures are logged
and the remaining steps still run.
"""

import grp
import logging
import os
import pwd
import re
from typing import Callable, NamedTuple, Sequence

import i18n
from errors import NotFoundError, SessionHelperError
from fileutils import change_owner, copy_dir, is_file_exist, sysroot_path

logger = logging.getLogger(__name__)

USER_DATA_COMMON = "deepin-default-settings/skel.common"
USER_DATA_LANG = "deepin-default-settings/skel.{lang}"

# Local administrator overrides first
SKELETON_PREFIXES = (
    sysroot_path("/usr/local/share"),
    sysroot_path("/usr/share"),
)

_USER_PATH = re.compile(r"/User(\d+)$")


class UserAccount(NamedTuple):
    uid: int
    name: str
    home: str
    primary_group: str


def get_user_info_by_uid(uid: int) -> UserAccount:
    """Resolve *uid* through the host account database."""
    try:
        entry = pwd.getpwuid(uid)
    except KeyError:
        raise NotFoundError(f"No such user: uid {uid}")
    try:
        group = grp.getgrgid(entry.pw_gid).gr_name
    except KeyError:
        group = str(entry.pw_gid)
    return UserAccount(
        uid=entry.pw_uid,
        name=entry.pw_name,
        home=entry.pw_dir,
        primary_group=group,
    )


def uid_from_user_path(user_path: str) -> int:
    """Extract the uid: "/com/deepin/daemon/Accounts/User1001" → 1001."""
    match = _USER_PATH.search(user_path)
    if not match:
        raise ValueError(f"Not an account object path: '{user_path}'")
    return int(match.group(1))


def find_skeleton(relative: str, prefixes: Sequence[str] = SKELETON_PREFIXES) -> str:
    """Return the first existing <prefix>/<relative>."""
    data = ""
    for prefix in prefixes:
        data = os.path.join(prefix, relative)
        if is_file_exist(data):
            return data
    raise NotFoundError(f"Not found user data '{data}'")


class UserDataProvisioner:
    """Copies skeleton data into a home directory and repairs ownership."""

    def __init__(
        self,
        prefixes: Sequence[str] = SKELETON_PREFIXES,
        locale_file: str = None,
        user_lookup: Callable[[int], UserAccount] = get_user_info_by_uid,
    ):
        self.prefixes = tuple(prefixes)
        self.locale_file = locale_file or i18n.DEFAULT_LOCALE_FILE
        self.user_lookup = user_lookup

    def provision(self, uid: int) -> None:
        try:
            info = self.user_lookup(uid)
        except (SessionHelperError, KeyError) as e:
            logger.warning(f"Find user by uid '{uid}' failed: {e}")
            return

        lang = i18n.default_locale_tag(self.locale_file)

        try:
            self.copy_common_data(info.home)
        except (SessionHelperError, OSError) as e:
            logger.debug(f"Copy common data for '{info.name}' failed: {e}")

        try:
            self.copy_data_by_lang(info.home, lang)
        except (SessionHelperError, OSError) as e:
            logger.debug(f"Copy user data for '{info.name}' - '{lang}' failed: {e}")

        try:
            change_owner(info.home, info.name, info.name)
        except (SessionHelperError, OSError) as e:
            logger.warning(f"Chown for '{info.name}' failed: {e}")

    def copy_common_data(self, home: str) -> None:
        data = find_skeleton(USER_DATA_COMMON, self.prefixes)
        copy_dir(data, home)

    def copy_data_by_lang(self, home: str, lang: str) -> None:
        data = find_skeleton(USER_DATA_LANG.format(lang=lang), self.prefixes)
        copy_dir(data, home)


def provision(uid: int) -> None:
    """Provision the home directory of *uid* with the default search path."""
    UserDataProvisioner().provision(uid)


def provision_user_path(user_path: str) -> None:
    """Provision from an account object path, as emitted by the account daemon."""
    try:
        uid = uid_from_user_path(user_path)
    except ValueError as e:
        logger.warning(str(e))
        return
    provision(uid)
