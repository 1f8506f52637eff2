"""
Centralized configuration constants for Sleuth.

This module provides a single source of truth for configuration values
that are used across multiple modules, making them easier to update
and maintain.
"""

# ============================================================================
# Client Identity
# ============================================================================

CLIENT_TOOL = "sleuth-client"
"""Tool name reported in the User-Agent header."""

SUBMISSION_TOOL = "sleuth"
"""Source name used when submitting a bill of materials to IQ Server."""

# ============================================================================
# OSS Index
# ============================================================================

OSS_INDEX_URL = "https://ossindex.sonatype.org/api/v3/component-report"
"""Component report endpoint of the vulnerability-intelligence service."""

MAX_COORDINATES_PER_REQUEST = 128
"""Maximum number of coordinates OSS Index accepts in one request."""

OSS_INDEX_DIR_NAME = ".ossindex"
"""Application-data directory (under the user's home) for OSS Index state."""

OSS_INDEX_CONFIG_FILE_NAME = ".oss-index-config"
"""YAML file holding OSS Index credentials."""

# ============================================================================
# Cache
# ============================================================================

CACHE_DIR_NAME = "sleuth"
"""Directory under OSS_INDEX_DIR_NAME holding Sleuth's caches."""

CACHE_DB_NAME = "sleuth-cache"
"""Name of the cache database directory."""

CACHE_DB_FILE = "cache.db"
"""SQLite file inside the cache database directory."""

DEFAULT_CACHE_TTL_HOURS = 12
"""Hours a cached audit result stays valid."""

# ============================================================================
# IQ Server
# ============================================================================

IQ_SERVER_DIR_NAME = ".iqserver"
"""Application-data directory (under the user's home) for IQ Server state."""

IQ_SERVER_CONFIG_FILE_NAME = ".iq-server-config"
"""YAML file holding IQ Server credentials."""

DEFAULT_IQ_SERVER = "http://localhost:8070"
"""Default IQ Server base URL."""

DEFAULT_IQ_USERNAME = "admin"
"""Default IQ Server username (shipped with IQ Server, should be changed)."""

DEFAULT_IQ_TOKEN = "admin123"
"""Default IQ Server password (shipped with IQ Server, should be changed)."""

DEFAULT_IQ_STAGE = "develop"
"""Default IQ Server evaluation stage."""

DEFAULT_MAX_RETRIES = 300
"""Default number of status polls before giving up on a policy evaluation."""

POLL_INTERVAL_SECONDS = 1.0
"""Wait between two polls of the IQ Server status endpoint."""

IQ_APPLICATIONS_PATH = "/api/v2/applications"
"""Endpoint resolving public application IDs to internal IDs."""

IQ_SCAN_PATH_TEMPLATE = "/api/v2/scan/applications/{internal_id}/sources/{tool}"
"""Endpoint accepting a bill of materials for policy evaluation."""

# ============================================================================
# Timeouts (in seconds)
# ============================================================================

API_REQUEST_TIMEOUT = 30
"""Timeout for requests to OSS Index and IQ Server (30 seconds)."""

# ============================================================================
# Exclusions
# ============================================================================

DEFAULT_EXCLUDE_FILE = ".sleuth-ignore"
"""Default file listing vulnerabilities to exclude, one per line."""

# ============================================================================
# Exit Codes
# ============================================================================

EXIT_OK = 0
"""No vulnerabilities and no policy failure."""

EXIT_VULNERABLE = 1
"""Vulnerabilities found, or IQ Server reported a policy failure."""

EXIT_INVALID_INPUT = 2
"""Input or configuration could not be used."""

EXIT_SERVICE_ERROR = 3
"""A remote service or the network failed."""
