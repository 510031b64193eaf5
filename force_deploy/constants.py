"""Global constants for force-deploy"""

APP_NAME = "force-deploy"
LOG_FORMAT = "%(message)s"

# Project layout
SRC_DIR_NAME = "src"
PACKAGE_XML = "package.xml"
DESTRUCTIVE_CHANGES_XML = "destructiveChanges.xml"
META_XML_SUFFIX = "-meta.xml"
DEFAULT_SESSION_DIR = ".vim-force.com"
SESSION_FILE_NAME = "session.properties"
DESCRIBE_CACHE_FILE_NAME = "describeMetadata-result.js"
SESSION_FILE_HEADER = (
    "Session data\n"
    "This is automatically generated file. Any manual changes may be overwritten."
)

# Names that always go into the deployment archive
ALWAYS_INCLUDE_NAMES = frozenset({SRC_DIR_NAME, PACKAGE_XML})

# Archive handling
HIDDEN_FILE_PREFIX = "."
BACKUP_FILE_SUFFIX = "~"
ARCHIVE_CHUNK_SIZE = 8192

# Remote metadata model
DEFAULT_API_VERSION = "29.0"
METADATA_NAMESPACE = "http://soap.sforce.com/2006/04/metadata"
APEX_CLASS = "ApexClass"
APEX_TRIGGER = "ApexTrigger"
CLASS_SUFFIX = "cls"
TRIGGER_SUFFIX = "trigger"

# Type names used in stack traces, mapped to file suffixes
STACK_TYPE_SUFFIXES = {
    "Class": CLASS_SUFFIX,
    "Trigger": TRIGGER_SUFFIX,
}

# Coverage
COVERAGE_THRESHOLD_PERCENT = 75
COVERAGE_FILE_PREFIX = "coverage"
COVERAGE_FILE_SUFFIX = ".txt"
LOG_FILE_PREFIX = "apex-"
LOG_FILE_SUFFIX = ".log"

# Test selection
TESTS_WILDCARD = "*"
EARLY_RETURN = "return; "

# Line/column sentinel when a location can not be parsed
UNKNOWN_POSITION = -1

# Response protocol
RESULT_SUCCESS = "SUCCESS"
RESULT_FAILURE = "FAILURE"
SECTION_ERROR_LIST = "ERROR LIST"
SECTION_DEPLOYED_FILES = "DEPLOYED FILES"
SECTION_MODIFIED_FILES = "MODIFIED FILE LIST"


class MessageType:
    """Severity tags used by the response protocol"""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    DEBUG = "DEBUG"


# Config keys
CONFIG_PROJECT_PATH = "projectPath"
CONFIG_SESSION_FOLDER = "sessionFolderPath"
CONFIG_RESPONSE_FILE = "responseFilePath"
CONFIG_LOG_FILE = "logFile"
CONFIG_TEMP_FOLDER = "tempFolderPath"
CONFIG_API_VERSION = "apiVersion"
CONFIG_CLIENT = "client"
CONFIG_CHECK_ONLY = "checkOnly"
CONFIG_IGNORE_CONFLICTS = "ignoreConflicts"
CONFIG_TESTS_TO_RUN = "testsToRun"
CONFIG_REPORT_COVERAGE = "reportCoverage"
CONFIG_SPECIFIC_FILES = "specificFiles"
CONFIG_SPECIFIC_COMPONENTS = "specificComponents"
CONFIG_UPDATE_SESSION = "updateSessionDataOnSuccess"
CONFIG_PREFER_MD5 = "preferMD5"
CONFIG_CALLING_ANOTHER_ORG = "callingAnotherOrg"
CONFIG_REPLAY_FILE = "replayFile"
CONFIG_ARCHIVE_OUTPUT = "archiveOutput"

TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
FALSE_VALUES = frozenset({"false", "no", "0", "off"})


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "FD001"
    MISSING_REQUIRED_PARAMETER = "FD002"
    INPUT_ERROR = "FD003"
    TEST_SELECTION_ERROR = "FD004"
    CONFLICT_DETECTED = "FD005"
    DEPLOY_FAILED = "FD006"
    SESSION_STORE_ERROR = "FD007"
    UNKNOWN_CLIENT = "FD008"


# Environment variables
ENV_CONFIG_PATH = "FORCE_DEPLOY_CONFIG"
ENV_LOG_LEVEL = "FORCE_DEPLOY_LOG_LEVEL"

