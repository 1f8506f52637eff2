"""
Pytest fixtures and configuration for Sleuth tests.

Provides shared fixtures and test utilities across the test suite. HTTP is
faked with Mock(spec=requests.Session) so call counts can be asserted; time
is faked with FakeClock so nothing waits in real time.
"""

from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from core.cache import ResultCache
from core.models import Vulnerability, VulnerabilityRecord


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(status_code=200, json_data=None, text="", reason=""):
    """Build a fake requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.reason = reason
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def sample_vulnerability(**overrides) -> Vulnerability:
    """A representative OSS Index vulnerability."""
    values = dict(
        id="sonatype-2019-0115",
        title="[CVE-2019-11840] Insufficient Entropy",
        description="An issue was discovered in supplementary Go cryptography libraries.",
        cvss_score=Decimal("5.9"),
        cvss_vector="CVSS:3.0/AV:N/AC:H/PR:N/UI:N/S:U/C:H/I:N/A:N",
        cve="CVE-2019-11840",
        reference="https://ossindex.sonatype.org/vuln/sonatype-2019-0115",
    )
    values.update(overrides)
    return Vulnerability(**values)


def report_entry(coordinates: str, vulnerable: bool = False) -> dict:
    """One entry of an OSS Index component-report response."""
    return {
        "coordinates": coordinates,
        "reference": f"https://ossindex.sonatype.org/component/{coordinates}",
        "vulnerabilities": [sample_vulnerability().to_dict()] if vulnerable else [],
    }


def make_oss_session(vulnerable=(), status_code=200):
    """
    Fake session answering component-report requests.

    Echoes every requested coordinate back; coordinates listed in
    `vulnerable` get one vulnerability.
    """
    vulnerable = set(vulnerable)
    session = Mock(spec=requests.Session)

    def post(url, json=None, **kwargs):
        if status_code != 200:
            return make_response(status_code=status_code, reason="Error")
        body = [report_entry(c, c in vulnerable) for c in json["coordinates"]]
        return make_response(json_data=body)

    session.post.side_effect = post
    return session


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock):
    """Result cache in a temporary directory."""
    return ResultCache(cache_dir=tmp_path / "cache", clock=clock)


@pytest.fixture
def vulnerable_record():
    """Record with one active vulnerability."""
    return VulnerabilityRecord(
        coordinates="pkg:golang/golang.org/x/crypto@0.0.0-20190308221718-c2843e01d9a2",
        reference="https://ossindex.sonatype.org/component/pkg:golang/golang.org/x/crypto",
        vulnerabilities=(sample_vulnerability(),),
    )


@pytest.fixture
def clean_record():
    """Record without vulnerabilities."""
    return VulnerabilityRecord(
        coordinates="pkg:golang/pkg/errors@0.9.1",
        reference="https://ossindex.sonatype.org/component/pkg:golang/pkg/errors@0.9.1",
    )
