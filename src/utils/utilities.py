"""This module is used for ad-hoc utilities."""
import sys
from datetime import datetime, timezone
from typing import Any
from pathlib import Path
from loguru import logger

ACCOUNTDISABLE = 0x2
GROUP_TYPE_SECURITY = 0x80000000
GROUP_TYPE_SCOPES = {
    0x1: "BuiltinLocal",
    0x2: "Global",
    0x4: "DomainLocal",
    0x8: "Universal",
}


def write_monitoring_log(
    basic_config: dict[str, Any], run_status: bool, runner: str
) -> None:
    """Write the monitoring log with the run status.

    Parameters
    ----------
    basic_config :
        The basic configuration as per BasicConfig.
    run_status :
        True if the run was a success, False otherwise.
    runner :
        The runner this was called from. This will write a monitoring log file for
        that runner.

    Raises
    ------
    Exception
        Any error should log to STDOUT and exit with failure.
    """
    config: dict[str, Any] = basic_config["config"]
    try:
        Path(f"{runner}_{config['settings']['monitoring_log_file']}").write_text(
            str(run_status)
        )
    except OSError as exc:
        logger.error("Unable to open file:")
        logger.error(exc)
        sys.exit(1)


def first_value(value: Any, default: Any = "") -> Any:
    """Reduce an LDAP attribute value to a single value.

    MS AD returns some attributes as lists even when they hold a single value.

    Examples
    --------
    >>> first_value(["Finance team"])
    'Finance team'
    >>> first_value([])
    ''
    """
    if isinstance(value, (list, tuple)):
        return value[0] if value else default
    if value is None:
        return default
    return value


def as_list(value: Any) -> list[Any]:
    """Make sure a (possibly missing) multi-valued attribute is a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def parse_ad_timestamp(value: Any) -> datetime | None:
    """Turn an AD generalized time into a timezone aware datetime.

    ldap3 decodes ``whenCreated`` into a datetime when schema info is loaded,
    otherwise the raw ``YYYYmmddHHMMSS.0Z`` string is returned.

    Examples
    --------
    >>> parse_ad_timestamp("20200101120000.0Z")
    datetime.datetime(2020, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    value = first_value(value, None)
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1]
    text = text.split(".")[0]
    try:
        return datetime.strptime(text, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        logger.warning(f"Unexpected generalized time value: {value}")
        return None


def is_account_disabled(user_account_control: Any) -> bool:
    """Check the ACCOUNTDISABLE bit of a userAccountControl value."""
    value = first_value(user_account_control, 0)
    try:
        return bool(int(value) & ACCOUNTDISABLE)
    except (TypeError, ValueError):
        logger.warning(f"Unexpected userAccountControl value: {value}")
        return False


def decode_group_type(group_type: Any) -> tuple[str, str]:
    """Split the groupType bitmask into category and scope.

    Parameters
    ----------
    group_type :
        The raw groupType value. AD stores it as a signed 32 bit integer, so
        security groups come back negative.

    Returns
    -------
    tuple[str, str]
        The category (``Security`` or ``Distribution``) and the group scope.

    Examples
    --------
    >>> decode_group_type(-2147483646)
    ('Security', 'Global')
    >>> decode_group_type(8)
    ('Distribution', 'Universal')
    """
    value = first_value(group_type, None)
    try:
        bits = int(value) & 0xFFFFFFFF
    except (TypeError, ValueError):
        return "Unknown", "Unknown"
    category = "Security" if bits & GROUP_TYPE_SECURITY else "Distribution"
    scope = "Unknown"
    for flag, name in GROUP_TYPE_SCOPES.items():
        if bits & flag:
            scope = name
            break
    return category, scope


def rdn_value(distinguished_name: str) -> str:
    """Return the value of the first RDN of a distinguished name.

    Examples
    --------
    >>> rdn_value("OU=Finance,DC=example,DC=com")
    'Finance'
    """
    first = distinguished_name.split(",")[0]
    if "=" in first:
        return first.split("=", 1)[1]
    return first
