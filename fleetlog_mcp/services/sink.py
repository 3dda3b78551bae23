"""Local file sink for collected logs.

File names are built as `<instance-id>-<dns>-<name>`, with the group name
in front when the same instance ID is listed under more than one group.
Names that would hit filesystem limits are truncated and given a random
suffix so two long names sharing a prefix do not collide.
"""

import logging
import os
import random
import re
import string
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 240
TRUNCATED_LENGTH = 230
SUFFIX_LENGTH = 5
SUFFIX_CHARS = string.digits + string.ascii_lowercase

DNS_PREFIX_LENGTH = 7
# Stripped from the DNS name once non-alphanumerics are removed
CLOUD_DNS_SUBSTRINGS = ("ec2", "computeamazonaws", "amazonaws")

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(random.choices(SUFFIX_CHARS, k=length))


def shorten(name: str) -> str:
    """Shorten a file name that is too long for the filesystem.

    Args:
        name: Candidate file name

    Returns:
        The name unchanged if shorter than MAX_NAME_LENGTH, otherwise the
        first TRUNCATED_LENGTH characters plus a random suffix plus the
        original extension
    """
    if len(name) < MAX_NAME_LENGTH:
        return name

    ext = os.path.splitext(name)[1]
    new_name = name[:TRUNCATED_LENGTH] + random_suffix() + ext
    logger.info("file name too long; renamed (old=%s, new=%s)", name, new_name)
    return new_name


def instance_prefix(instance_id: str, public_dns_name: str, group: str | None = None) -> str:
    """Build the file name prefix shared by all files from one instance.

    Args:
        instance_id: Instance ID
        public_dns_name: Public DNS name, shortened into the prefix
        group: Group name to prepend, for instance IDs present in more
            than one group

    Example:
        >>> instance_prefix("i-0abc", "ec2-3-1-2-3.us-west-2.compute.amazonaws.com")
        'i-0abc-3123usw-'
        >>> instance_prefix("i-0abc", "", group="ng/a")
        'ng-a-i-0abc--'
    """
    dns = _NON_ALNUM.sub("", public_dns_name).lower()
    for substring in CLOUD_DNS_SUBSTRINGS:
        dns = dns.replace(substring, "")
    prefix = f"{instance_id}-{dns[:DNS_PREFIX_LENGTH]}-"
    if group:
        prefix = f"{_UNSAFE_NAME_CHARS.sub('-', group)}-{prefix}"
    return prefix


class FileSink:
    """Writes collected outputs into a run directory."""

    def __init__(self, run_dir: Path) -> None:
        self.run_dir = Path(run_dir)

    def write(self, name: str, data: bytes) -> Path:
        """Write data to a file in the run directory.

        Args:
            name: File name (shortened if too long)
            data: Raw bytes to write

        Returns:
            Path of the written file

        Raises:
            OSError: If the file cannot be created or written
        """
        path = self.run_dir / shorten(name)
        with open(path, "wb") as f:
            f.write(data)
        logger.debug("wrote %s (%d bytes)", path, len(data))
        return path
