"""
Unit test fixtures - service wired to fakes.
"""

import pytest

from trajectories.service import TrajectoryService


@pytest.fixture
def service(monthly_catalog, fake_repository, fake_probe, service_config):
    """TrajectoryService over the 2009-2010 monthly catalog and canned rows."""
    return TrajectoryService(monthly_catalog, fake_repository, fake_probe, service_config)
