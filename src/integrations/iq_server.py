"""
Nexus IQ Server client.

Wraps the three calls a policy evaluation needs: resolving a public
application id, submitting a bill of materials, and reading the evaluation
status. Sequencing and polling live in core.policy.
"""

import logging
from typing import Optional

import requests

from constants import (
    API_REQUEST_TIMEOUT,
    DEFAULT_IQ_SERVER,
    DEFAULT_IQ_TOKEN,
    DEFAULT_IQ_USERNAME,
    IQ_APPLICATIONS_PATH,
    IQ_SCAN_PATH_TEMPLATE,
    SUBMISSION_TOOL,
)
from core.exceptions import (
    ApplicationNotFound,
    PolicyServiceError,
    SubmissionRejected,
    TransportError,
)
from core.models import PolicyJobHandle, PolicyResult
from utils.useragent import get_user_agent

logger = logging.getLogger(__name__)

SERVICE_NAME = "Nexus IQ Server"


class IQServerClient:
    """
    Client for the IQ Server application and scan APIs.

    Each method issues exactly one HTTP request and never retries.
    """

    def __init__(
        self,
        server: str = DEFAULT_IQ_SERVER,
        username: str = DEFAULT_IQ_USERNAME,
        token: str = DEFAULT_IQ_TOKEN,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
        timeout: float = API_REQUEST_TIMEOUT,
        tool: str = SUBMISSION_TOOL,
    ):
        """
        Initialize IQ Server client.

        Args:
            server: IQ Server base URL
            username: IQ Server user
            token: IQ Server token or password
            session: HTTP session (a new one is created if omitted)
            user_agent: User-Agent header value
            timeout: Request timeout in seconds
            tool: Source name used in the scan submission path
        """
        self.server = server.rstrip("/")
        self.username = username
        self.token = token
        self.timeout = timeout
        self.tool = tool
        self.session = session or requests.Session()
        self.headers = {"User-Agent": user_agent or get_user_agent()}

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(
                method,
                url,
                auth=(self.username, self.token),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.Timeout as e:
            logger.error(f"Timeout contacting {SERVICE_NAME} at {url}")
            raise TransportError(SERVICE_NAME, f"timeout: {e}") from e
        except requests.RequestException as e:
            logger.error(f"Failed to contact {SERVICE_NAME}: {e}")
            raise TransportError(SERVICE_NAME, str(e)) from e

    def resolve_application(self, public_id: str) -> str:
        """
        Look up the internal id of an application.

        Args:
            public_id: Public application id as shown in IQ Server

        Returns:
            Internal application id (first match)

        Raises:
            ApplicationNotFound: No application has that public id
            PolicyServiceError: IQ Server answered with a non-200 status
            TransportError: The request did not complete
        """
        url = f"{self.server}{IQ_APPLICATIONS_PATH}"
        logger.debug(f"Resolving internal id for application {public_id}")

        response = self._request("GET", url, params={"publicId": public_id}, headers=self.headers)
        if response.status_code != 200:
            logger.error(f"Application lookup failed with status {response.status_code}")
            raise PolicyServiceError(response.status_code, IQ_APPLICATIONS_PATH)

        try:
            applications = response.json().get("applications") or []
        except (ValueError, AttributeError) as e:
            raise PolicyServiceError(response.status_code, IQ_APPLICATIONS_PATH) from e

        if not isinstance(applications, list) or (applications and not isinstance(applications[0], dict)):
            logger.error("Application lookup returned an unexpected body")
            raise PolicyServiceError(response.status_code, IQ_APPLICATIONS_PATH)

        if not applications or not applications[0].get("id"):
            raise ApplicationNotFound(public_id)

        internal_id = applications[0]["id"]
        logger.debug(f"Retrieved internal id {internal_id} for application {public_id}")
        return internal_id

    def submit_bom(self, internal_id: str, stage: str, sbom: str) -> PolicyJobHandle:
        """
        Submit a bill of materials for policy evaluation.

        Args:
            internal_id: Internal application id
            stage: Evaluation stage (e.g., "develop", "build")
            sbom: CycloneDX XML document

        Returns:
            Handle for polling the evaluation

        Raises:
            SubmissionRejected: IQ Server did not answer 202 with a status URL
            TransportError: The request did not complete
        """
        path = IQ_SCAN_PATH_TEMPLATE.format(internal_id=internal_id, tool=self.tool)
        url = f"{self.server}{path}"
        headers = dict(self.headers)
        headers["Content-Type"] = "application/xml"

        logger.debug(f"Submitting bill of materials to {url} for stage {stage}")
        response = self._request(
            "POST",
            url,
            params={"stageId": stage},
            data=sbom.encode("utf-8"),
            headers=headers,
        )

        if response.status_code != 202:
            logger.error(f"Bill of materials rejected with status {response.status_code}")
            raise SubmissionRejected(response.status_code, response.text or "")

        try:
            status_url = response.json().get("statusUrl")
        except (ValueError, AttributeError) as e:
            raise SubmissionRejected(response.status_code, response.text or "") from e

        if not status_url:
            raise SubmissionRejected(response.status_code, response.text or "")

        logger.debug(f"Evaluation accepted, status URL {status_url}")
        return PolicyJobHandle(
            status_url=status_url,
            server=self.server,
            username=self.username,
            token=self.token,
        )

    def poll_status(self, handle: PolicyJobHandle) -> Optional[PolicyResult]:
        """
        Read the current status of a policy evaluation.

        Args:
            handle: Handle returned by submit_bom

        Returns:
            PolicyResult once IQ Server answers 200 with a readable body, None while pending

        Raises:
            TransportError: The request did not complete
        """
        response = self._request("GET", handle.absolute_status_url, headers=self.headers)
        if response.status_code != 200:
            logger.debug(f"Evaluation pending (status {response.status_code})")
            return None

        try:
            return PolicyResult.from_dict(response.json(), server=handle.server)
        except (ValueError, AttributeError) as e:
            logger.debug(f"Unreadable status body, treating as pending: {e}")
            return None
