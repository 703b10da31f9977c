"""Error codes for CLI exit status.

The release pipeline stops at the first failing state; the code returned to
the shell tells CI which kind of failure stopped it.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable.
    - 0: Success
    - 1: User error (bad input, incomplete config)
    - 2: Environment error (missing build tool, unsupported platform, signing key)
    - 3: Build error (build failed, artifact missing)
    - 4: Network error (host unreachable, transient HTTP failure)
    - 5: I/O error (config or project file unreadable/unwritable)
    - 6: Remote conflict (asset already uploaded, malformed manifest)
    - 7: Auth error (token rejected)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    REMOTE_CONFLICT = 6
    AUTH_ERROR = 7

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
