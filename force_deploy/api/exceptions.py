"""Exception definitions for force-deploy API"""

from ..constants import ErrorCode


class ForceDeployError(Exception):
    """Base exception for force-deploy"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(ForceDeployError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class MissingConfigError(ConfigError):
    """Required configuration parameter missing"""

    def __init__(self, key: str):
        super().__init__(f"{key} is required")
        self.error_code = ErrorCode.MISSING_REQUIRED_PARAMETER
        self.key = key


class InputError(ForceDeployError):
    """Invalid user supplied input (file lists, component lists)"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INPUT_ERROR)


class TestSelectionError(InputError):
    """Invalid --testsToRun value or unsupported method filter"""

    __test__ = False

    def __init__(self, message: str):
        super().__init__(message)
        self.error_code = ErrorCode.TEST_SELECTION_ERROR


class ConflictError(ForceDeployError):
    """Remote has newer versions of files about to be deployed"""

    def __init__(self, conflicts):
        paths = ", ".join(c.candidate.relative_path for c in conflicts)
        super().__init__(f"Outdated file(s) detected: {paths}", ErrorCode.CONFLICT_DETECTED)
        self.conflicts = conflicts


class DeployError(ForceDeployError):
    """Remote deploy call failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.DEPLOY_FAILED)


class SessionStoreError(ForceDeployError):
    """Change tracking cache could not be read or written"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SESSION_STORE_ERROR)


class UnknownClientError(ConfigError):
    """Remote client could not be resolved"""

    def __init__(self, name: str):
        super().__init__(f"Unknown remote client: {name}")
        self.error_code = ErrorCode.UNKNOWN_CLIENT
        self.name = name
