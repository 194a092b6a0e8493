"""
Host Identity Fingerprint — Stable identifier of the current machine.

Security Note:
    Host name, platform, architecture and CPU model are readable by any
    local process. A key derived from them only protects against plaintext
    secrets leaking off the machine (backups, repositories); it does not
    protect against an attacker with access to the host. Changing any of
    the attributes makes previously encrypted data unreadable.
"""
import sys
import socket
import hashlib
import platform

UNKNOWN = "unknown"
_DELIMITER = "|"

_ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "armv6l": "arm",
    "armv7l": "arm",
}


def _hostname() -> str:
    try:
        return socket.gethostname() or UNKNOWN
    except OSError:
        return UNKNOWN


def _arch() -> str:
    machine = platform.machine().lower()
    if not machine:
        return UNKNOWN
    return _ARCH_NAMES.get(machine, machine)


def _cpu_model() -> str:
    """Model name of the first CPU core."""
    if sys.platform.startswith("linux"):
        try:
            with open("/proc/cpuinfo", encoding="utf-8", errors="replace") as fp:
                for line in fp:
                    name, sep, value = line.partition(":")
                    if sep and name.strip() == "model name":
                        return value.strip() or UNKNOWN
        except OSError:
            pass
    return platform.processor().strip() or UNKNOWN


def host_attributes() -> tuple[str, str, str, str]:
    """Return the (hostname, platform, arch, cpu model) tuple of this host."""
    return (
        _hostname(),
        sys.platform or UNKNOWN,
        _arch(),
        _cpu_model(),
    )


def fingerprint() -> bytes:
    """Derive the 32-byte SHA-256 fingerprint of the current host.

    Never raises: unavailable attributes fall back to ``"unknown"``.

    Returns:
        32-byte digest.
    """
    joined = _DELIMITER.join(host_attributes())
    return hashlib.sha256(joined.encode("utf-8")).digest()
