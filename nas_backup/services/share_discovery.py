"""Share discovery - lists the disk shares a NAS exposes over SMB."""

import logging
import re

from ..config import Settings
from ..core.exceptions import DiscoveryUnreachable
from .command_runner import CommandRunner

# Tabular `smbclient -L` output: "\tdocs            Disk      Documents"
_TABLE_ROW = re.compile(r"^\s+(?P<name>\S(?:.*?\S)?)\s+(?P<type>Disk|IPC|Printer)(?:\s+.*)?$")


def is_administrative_share(name: str) -> bool:
    return name.endswith("$")


def parse_share_listing(output: str) -> list[str]:
    """
    Extract disk share names from `smbclient -L` output.

    Understands the grepable format (``Disk|name|comment``) produced with
    ``-g`` as well as the default table. Administrative shares (``C$``,
    ``IPC$``...) are dropped; order is preserved and duplicates removed.
    """
    shares: list[str] = []
    for line in output.splitlines():
        if "|" in line:
            parts = line.split("|")
            if len(parts) < 2 or parts[0].strip() != "Disk":
                continue
            name = parts[1].strip()
        else:
            match = _TABLE_ROW.match(line)
            if not match or match.group("type") != "Disk":
                continue
            name = match.group("name")

        if not name or is_administrative_share(name) or name in shares:
            continue
        shares.append(name)
    return shares


class ShareDiscoveryService:
    """Queries the NAS for its share list. Unreachable NAS is an error, zero shares is not."""

    def __init__(self, settings: Settings, runner: CommandRunner):
        self._settings = settings
        self._runner = runner

    def build_command(self) -> list[str]:
        return [
            "smbclient",
            "-g",
            "-L",
            f"//{self._settings.nas_ip}",
            "-U",
            self._settings.nas_user,
        ]

    async def discover_shares(self) -> list[str]:
        logging.info(f"Listing shares on //{self._settings.nas_ip}")
        result = await self._runner.run(
            self.build_command(),
            timeout=self._settings.discovery_timeout_seconds,
            env={"PASSWD": self._settings.nas_password},
        )

        if not result.succeeded:
            raise DiscoveryUnreachable(
                f"Could not list shares on //{self._settings.nas_ip}", result
            )

        shares = parse_share_listing(result.stdout)
        if shares:
            logging.info(f"Shares found: {', '.join(shares)}")
        else:
            logging.warning(f"No disk shares found on //{self._settings.nas_ip}")
        return shares
