from __future__ import annotations

import getpass
import logging
import pwd

from ._utils import ensure, is_root, privileged, run_logged

logger = logging.getLogger(__name__)

BASE_PACKAGES = [
    "ca-certificates",
    "curl",
    "gnupg",
    "lsb-release",
    "software-properties-common",
    "ufw",
    "sudo",
    "jq",
]


def current_user() -> str:
    return getpass.getuser()


def user_exists(name: str) -> bool:
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True


def refresh_sudo() -> None:
    if is_root():
        return
    ensure(["sudo"])
    logger.info("Requesting sudo access (you may be prompted for your password)...")
    run_logged(["sudo", "-v"])


def update_system() -> None:
    ensure(["apt-get"])
    logger.info("Updating apt package lists and upgrading packages...")
    run_logged(privileged(["apt-get", "update", "-y"]))
    run_logged(
        privileged(["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "upgrade", "-y"])
    )


def install_common_packages() -> None:
    logger.info("Installing base dependencies...")
    run_logged(privileged(["apt-get", "install", "-y", *BASE_PACKAGES]))


def configure_locale_timezone(locale: str, timezone: str) -> None:
    logger.info(f"Configuring locale to {locale} and timezone to {timezone}...")
    run_logged(privileged(["apt-get", "install", "-y", "locales", "tzdata"]))
    run_logged(privileged(["locale-gen", locale]))
    run_logged(privileged(["update-locale", f"LANG={locale}"]))
    run_logged(privileged(["timedatectl", "set-timezone", timezone]))


def ensure_user(name: str) -> None:
    """Create ``name`` when missing and grant it sudo through a sudoers drop-in."""
    if user_exists(name):
        logger.info(f"User '{name}' already exists. Ensuring sudo access...")
    else:
        logger.info(f"Creating user '{name}'...")
        run_logged(privileged(["adduser", "--disabled-password", "--gecos", "", name]))
        logger.info(f"Set a password for '{name}' (needed for sudo access):")
        run_logged(privileged(["passwd", name]))

    sudoers = f"/etc/sudoers.d/{name}"
    run_logged(privileged(["usermod", "-aG", "sudo", name]))
    run_logged(
        privileged(["tee", sudoers]),
        input=f"{name} ALL=(ALL) ALL\n",
        capture_output=True,
        echo="on_error",
    )
    run_logged(privileged(["chmod", "440", sudoers]))
