"""Process exit statuses used by the relkit command line.

A failed release step exits with ``ReleaseError.exit_code`` (the configured
``release.exit_code``, 1 unless overridden). The codes below cover what
happens outside a step: bad command line usage, an unreadable configuration,
and upload transport failures.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
