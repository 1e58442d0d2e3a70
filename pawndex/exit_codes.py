"""
Standard exit codes for pawndex commands.

Following Unix/POSIX conventions for command-line tools.
"""
import sys
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # Package not in the index
API_ERROR = 65           # GitHub API call failed
CONFIG_ERROR = 66        # Configuration file error
STORE_ERROR = 67         # Package store unreadable or unwritable
NETWORK_ERROR = 68       # Network connection failed or timed out
DATA_ERROR = 70          # Data format or validation error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'InvalidIdentifierError': USAGE_ERROR,
    'GitHubError': API_ERROR,
    'RateLimitError': API_ERROR,
    'NotFoundError': NOT_FOUND,
    'ScrapeTimeout': NETWORK_ERROR,
    'ScrapeCancelled': INTERRUPTED,
    'StoreError': STORE_ERROR,
    'VersionError': DATA_ERROR,
    'ManifestError': DATA_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ConfigError': CONFIG_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    return EXCEPTION_EXIT_CODES.get(exc.__class__.__name__, GENERAL_ERROR)


def exit_with_code(code: int, message: Optional[str] = None):
    """
    Exit with a specific code and optional message.

    Args:
        code: Exit code
        message: Optional message to print to stderr
    """
    if message:
        print(message, file=sys.stderr)
    sys.exit(code)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class PackageNotFoundError(CommandError):
    """Raised when an identifier has no classified package in the index."""
    def __init__(self, identifier: str):
        super().__init__(f"{identifier} is not in the index", NOT_FOUND)
        self.identifier = identifier


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)
